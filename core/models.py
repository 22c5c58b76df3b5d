# core/models.py
#
# Purpose:
# - Cross-cutting records shared by every app:
#   • AuditLogEntry: append-only trail of state-changing operations.
#   • RateLimitBucket: recent attempt timestamps per (actor, action) key.
#
from django.db import models


class AuditLogEntry(models.Model):
    """
    Immutable audit record.
    Written once by core.audit.AuditLogger; updates and deletes are refused.
    """
    actor = models.CharField(max_length=128)
    action = models.CharField(max_length=64, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    context = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-timestamp", "-id"]

    def __str__(self):
        return f"{self.actor} {self.action} @ {self.timestamp:%Y-%m-%d %H:%M:%S}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Audit log entries are write-once.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Audit log entries cannot be deleted.")


class RateLimitBucket(models.Model):
    # key is "<actor>_<action>"; timestamps are epoch seconds (floats)
    key = models.CharField(max_length=200, unique=True)
    timestamps = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key} ({len(self.timestamps)} recent)"
