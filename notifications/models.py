# notifications/models.py
#
# Purpose:
# - Record messages sent to requesters (order status changes, cancellations).
#
# Design:
# - recipient_id is the same opaque identity orders use (a username).
# - status tracks the delivery attempt: queued -> sent | failed.
#
from django.db import models


class Notification(models.Model):
    CHANNEL_CHOICES = [
        ("email", "Email"),
        ("sms", "SMS"),
        ("push", "Push"),
    ]
    STATUS_CHOICES = [
        ("queued", "Queued"),
        ("sent", "Sent"),
        ("failed", "Failed"),
    ]

    recipient_id = models.CharField(max_length=128, db_index=True)
    kind = models.CharField(max_length=50, default="order_status")
    title = models.CharField(max_length=200)
    message = models.TextField()
    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES, default="email")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="queued")
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"Notification to {self.recipient_id} at {self.created_at:%Y-%m-%d %H:%M}"
