"""
Automated promotion of orders whose processing window has elapsed.

Should be run as a scheduled job (every 15 minutes):
    python manage.py sweep_stale_orders

in-progress -> out-for-delivery once updated_at + processing_time_hours <= now.
That is an edge of the normal state machine; the write is conditional on the
order still being in-progress, so a cancellation that lands first wins.
Orders without a processing estimate are left for a human.
"""

import logging
from datetime import timedelta

from django.db import DatabaseError, transaction
from django.utils import timezone

from core.audit import AuditLogger

from ..models import Order
from ..signals import order_status_changed
from ..state import OrderStatus

logger = logging.getLogger(__name__)

SWEEPER_ACTOR = "system:status-sweeper"


def sweep_stale_orders(now=None, audit=None) -> dict:
    """
    Promote every ready in-progress order.

    Each order is written on its own, so one failing row does not hold back
    the rest; failures are logged and picked up again on the next run.

    Returns:
        dict: counts of checked, promoted, waiting, skipped and failed orders
    """
    now = now or timezone.now()
    audit = audit or AuditLogger()
    summary = {"checked": 0, "promoted": 0, "waiting": 0, "skipped": 0, "failed": 0}

    candidates = Order.objects.filter(status=OrderStatus.IN_PROGRESS).order_by("updated_at", "id")

    for order in candidates:
        summary["checked"] += 1

        if not order.processing_time_hours or not order.updated_at:
            summary["skipped"] += 1
            continue

        ready_at = order.updated_at + timedelta(hours=order.processing_time_hours)
        if now < ready_at:
            summary["waiting"] += 1
            continue

        try:
            with transaction.atomic():
                updated = Order.objects.filter(pk=order.pk, status=OrderStatus.IN_PROGRESS).update(
                    status=OrderStatus.OUT_FOR_DELIVERY,
                    updated_at=now,
                )
        except DatabaseError as e:
            summary["failed"] += 1
            logger.error("Could not promote order %s: %s", order.pk, e)
            continue

        if not updated:
            # moved (e.g. cancelled) after we read it
            logger.info("Order %s left in-progress before the sweep reached it", order.pk)
            continue

        summary["promoted"] += 1
        order.refresh_from_db()
        logger.info("Order %s transitioned: in-progress → out-for-delivery", order.pk)

        audit.record(
            SWEEPER_ACTOR,
            "order_status_update",
            {"order_id": order.pk, "from": OrderStatus.IN_PROGRESS.value, "to": OrderStatus.OUT_FOR_DELIVERY.value},
            {"provider_id": order.provider_id, "automated": True},
        )
        for receiver, outcome in order_status_changed.send_robust(
            sender=Order, order=order, previous=OrderStatus.IN_PROGRESS.value, actor=SWEEPER_ACTOR
        ):
            if isinstance(outcome, Exception):
                logger.error("order_status_changed receiver %r failed: %s", receiver, outcome)

    if summary["promoted"] or summary["failed"]:
        logger.info("Status sweep summary: %s", summary)
    else:
        logger.debug("Status sweep: nothing to promote (%s)", summary)
    return summary
