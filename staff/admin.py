from django.contrib import admin
from .models import StaffMember, WorkingHours


@admin.register(StaffMember)
class StaffMemberAdmin(admin.ModelAdmin):
    list_display = ("name", "provider_id", "role", "email", "is_active", "is_deleted")
    list_filter = ("role", "is_active", "is_deleted")
    search_fields = ("name", "email", "provider_id")


@admin.register(WorkingHours)
class WorkingHoursAdmin(admin.ModelAdmin):
    list_display = ("provider_id", "is_deleted", "updated_at")
    search_fields = ("provider_id",)
