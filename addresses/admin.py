from django.contrib import admin
from .models import UserAddress


@admin.register(UserAddress)
class UserAddressAdmin(admin.ModelAdmin):
    list_display = ("user_id", "address_type", "is_default", "is_deleted", "updated_at")
    list_filter = ("address_type", "is_default", "is_deleted")
    search_fields = ("user_id",)
