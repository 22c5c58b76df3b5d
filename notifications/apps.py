from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
    verbose_name = "Order notifications"

    def ready(self):
        # connects the order_status_changed receiver
        from . import signals  # noqa: F401
