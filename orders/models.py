# orders/models.py
#
# Purpose:
# - The marketplace order.
#
# Design highlights:
# - requester_id / provider_id are opaque identities (the username of the
#   signed-in user on the API side).
# - items, pickup/delivery details, pricing and payment are JSON documents;
#   their shape is checked by orders.serializers before anything is stored.
# - status is one of orders.state.OrderStatus and only changes through
#   orders.services.order_lifecycle or the status sweeper.
# - Orders are never deleted; cancellation is a status.
# - created_at / updated_at are set by the server. updated_at is written
#   explicitly on every transition (QuerySet.update() skips auto_now).
#
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from slots.models import Slot
from .state import OrderStatus


class PaymentStatus(models.TextChoices):
    UNPAID = "unpaid", "Unpaid"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class CancelledBy(models.TextChoices):
    ADMIN = "admin", "Admin"
    USER = "user", "User"


class Order(models.Model):
    requester_id = models.CharField(max_length=128, db_index=True)
    provider_id = models.CharField(max_length=128, db_index=True)

    # [{"service": "...", "quantity": 2, "unit_price": "4.50"}, ...]
    items = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    pickup_details = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    delivery_details = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    # {"subtotal": ..., "discount": ..., "total": ...}
    pricing = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    # {"status": "unpaid|paid|failed|refunded", "transaction_id": ...}
    payment = models.JSONField(default=dict, encoder=DjangoJSONEncoder)

    coupon_code = models.CharField(max_length=50, null=True, blank=True)
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        help_text="Final amount after discount.",
    )
    slot = models.ForeignKey(Slot, on_delete=models.SET_NULL, null=True, blank=True, related_name="orders")

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    processing_time_hours = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Expected hours in progress before the order is ready for delivery.",
    )
    cancellation_reason = models.TextField(blank=True, default="")
    cancelled_by = models.CharField(max_length=10, choices=CancelledBy.choices, null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Order #{self.pk} {self.requester_id} → {self.provider_id} ({self.status})"
