# notifications/signals.py
#
# Purpose:
# - Tell people when an order's status changes.
#   * every change: the requester gets a message
#   * cancellation: the provider is told as well
#
# Notes:
# - Listens to orders.signals.order_status_changed, which the lifecycle engine
#   and the status sweeper send after their write succeeded.
# - The sender uses send_robust(), so an exception here is logged by the
#   caller and never fails the order operation.
#
from django.dispatch import receiver

from orders.models import Order
from orders.signals import order_status_changed
from orders.state import OrderStatus
from notifications.services.dispatcher import NotificationDispatcher

MESSAGES = {
    OrderStatus.PROCESSING: "Your order #{id} is being processed.",
    OrderStatus.OUT_FOR_PICKUP: "A driver is on the way to pick up order #{id}.",
    OrderStatus.IN_PROGRESS: "Order #{id} has been picked up and is in progress.",
    OrderStatus.OUT_FOR_DELIVERY: "Order #{id} is out for delivery.",
    OrderStatus.COMPLETED: "Order #{id} has been delivered. Thank you!",
}


@receiver(order_status_changed, sender=Order)
def order_status_notifications(sender, order: Order, previous: str, actor=None, **kwargs):
    dispatcher = NotificationDispatcher()

    if order.status == OrderStatus.CANCELLED:
        who = "by the marketplace" if order.cancelled_by == "admin" else "at your request"
        body = f"Order #{order.id} was cancelled {who}."
        if order.cancellation_reason:
            body += f"\nReason: {order.cancellation_reason}"
        dispatcher.notify(order.requester_id, f"Order #{order.id} cancelled", body, kind="order_cancelled")

        provider_body = (
            f"Order #{order.id} from {order.requester_id} was cancelled (was: {previous}).\n"
            f"Cancelled by: {order.cancelled_by}"
        )
        dispatcher.notify(order.provider_id, f"Order #{order.id} cancelled", provider_body, kind="order_cancelled")
        return

    template = MESSAGES.get(order.status)
    if template:
        dispatcher.notify(order.requester_id, f"Order #{order.id} update", template.format(id=order.id))
