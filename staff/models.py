# staff/models.py
#
# A provider's team and opening hours.
# - StaffMember: emails are unique per provider among non-deleted members (checked by the API).
# - WorkingHours: one live row per provider; days missing from the schedule are closed.
#
from django.db import models

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class StaffRole(models.TextChoices):
    MANAGER = "manager", "Manager"
    OPERATOR = "operator", "Operator"
    DRIVER = "driver", "Pickup / delivery driver"


class StaffMember(models.Model):
    provider_id = models.CharField(max_length=128, db_index=True)
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=32)
    role = models.CharField(max_length=16, choices=StaffRole.choices)
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["provider_id", "name"]

    def __str__(self):
        return f"{self.name} ({self.role}, {self.provider_id})"


class WorkingHours(models.Model):
    provider_id = models.CharField(max_length=128, db_index=True)
    # {"monday": {"open": "09:00", "close": "18:00"}, ...}
    schedule = models.JSONField(default=dict)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "working hours"

    def __str__(self):
        return f"Working hours of {self.provider_id}"
