from django.contrib import admin
from .models import Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "provider_id", "pricing_model", "base_price", "is_active", "is_deleted")
    list_filter = ("pricing_model", "is_active", "is_deleted")
    search_fields = ("name", "provider_id")
