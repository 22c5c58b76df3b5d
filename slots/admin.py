from django.contrib import admin
from .models import ServiceableArea, Slot, SubSlot


@admin.register(ServiceableArea)
class ServiceableAreaAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "provider_id", "radius_km", "is_active", "is_deleted")
    list_filter = ("is_active", "is_deleted")
    search_fields = ("name", "provider_id")


class SubSlotInline(admin.TabularInline):
    model = SubSlot
    extra = 0
    # Counter is owned by the reservation manager
    readonly_fields = ("current_bookings",)


@admin.register(Slot)
class SlotAdmin(admin.ModelAdmin):
    list_display = ("id", "area", "date", "label")
    list_filter = ("area",)
    inlines = [SubSlotInline]
