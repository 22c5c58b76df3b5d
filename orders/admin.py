from django.contrib import admin
from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "requester_id", "provider_id", "status", "total_amount", "coupon_code", "created_at")
    list_filter = ("status", "cancelled_by")
    search_fields = ("requester_id", "provider_id", "coupon_code")
    # Status moves only through the lifecycle engine / sweeper
    readonly_fields = ("status", "cancelled_by", "cancellation_reason", "created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):
        return False
