from django.contrib import admin
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("order", "author_id", "rating", "is_deleted", "created_at")
    list_filter = ("rating", "is_deleted")
    search_fields = ("author_id", "comment")
