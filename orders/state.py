"""
state.py
--------
The order status state machine. Every status check in the codebase goes
through this module; do not re-list statuses or edges elsewhere.

    pending -> processing -> out-for-pickup -> in-progress -> out-for-delivery -> completed
       \\___________\\_______________\\________________\\_______________\\-> cancelled

completed, cancelled and refunded are terminal.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    OUT_FOR_PICKUP = "out-for-pickup", "Out for pickup"
    IN_PROGRESS = "in-progress", "In progress"
    OUT_FOR_DELIVERY = "out-for-delivery", "Out for delivery"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.OUT_FOR_PICKUP, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_PICKUP: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# A requester may not cancel once the order is on its way back
USER_NON_CANCELLABLE = TERMINAL_STATUSES | {OrderStatus.OUT_FOR_DELIVERY}


def is_known_status(value) -> bool:
    return value in OrderStatus.values


def can_transition(current, new) -> bool:
    if not (is_known_status(current) and is_known_status(new)):
        return False
    return OrderStatus(new) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def is_terminal(status) -> bool:
    return status in TERMINAL_STATUSES
