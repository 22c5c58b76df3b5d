from django.contrib import admin
from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "max_discount", "min_value", "valid_from", "valid_till", "is_active", "is_deleted")
    list_filter = ("is_active", "is_deleted")
    search_fields = ("code", "name")
