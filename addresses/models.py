from django.db import models


class AddressType(models.TextChoices):
    HOME = "home", "Home"
    WORK = "work", "Work"
    OTHER = "other", "Other"


class UserAddress(models.Model):
    """
    A saved pickup/delivery address of a user.
    At most one non-deleted address per user is the default (kept by the API).
    """
    user_id = models.CharField(max_length=128, db_index=True)
    address_type = models.CharField(max_length=10, choices=AddressType.choices, default=AddressType.HOME)
    # {"name": ..., "phone": ...}
    contact = models.JSONField()
    # {"line1": ..., "city": ..., "postal_code": ...}
    address_components = models.JSONField()
    latitude = models.FloatField()
    longitude = models.FloatField()
    is_default = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-is_default", "-updated_at", "-id"]

    def __str__(self):
        return f"{self.user_id} ({self.address_type})"

