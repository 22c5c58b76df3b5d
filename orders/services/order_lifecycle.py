"""
order_lifecycle.py
------------------
Creates orders and moves them through their lifecycle.

Collaborators are handed in at construction (see OrderLifecycleEngine.default()
for the production wiring), so tests can swap any of them.

Notes:
- Order creation: rate limit -> check items against the catalog and both
  addresses against the provider's areas -> reserve slot -> apply coupon -> insert.
  Reserve, coupon and insert run in one transaction, so a bad coupon also undoes the
  slot reservation; no capacity is leaked by a failed order.
- Status writes are conditional on the status we read
  (UPDATE ... WHERE status = <previous>). If someone else moved the order in
  between (another provider call, a cancellation, the sweeper) the write
  matches nothing and the caller gets FailedPrecondition.
- Audit entries and notifications are best-effort and never fail the call.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from catalog.services.service_catalog import ServiceCatalog
from configmgr.lookup import get_int_setting
from core.audit import AuditLogger
from core.errors import FailedPrecondition, InvalidArgument, NotFound, PermissionDenied
from core.rate_limiter import RateLimiter
from coupons.services.coupon_validator import CouponValidator
from slots.services.coverage import ServiceAreaCoverage
from slots.services.slot_reservation import SlotReservationManager

from ..models import CancelledBy, Order
from ..signals import order_status_changed
from ..state import OrderStatus, USER_NON_CANCELLABLE, can_transition, is_known_status, is_terminal

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "requester_id",
    "provider_id",
    "items",
    "pickup_details",
    "delivery_details",
    "pricing",
    "payment",
    "total_amount",
    "slot_id",
)


class OrderLifecycleEngine:
    def __init__(self, reservations, rate_limiter, audit, coupons, catalog=None, coverage=None):
        self.reservations = reservations
        self.rate_limiter = rate_limiter
        self.audit = audit
        self.coupons = coupons
        self.catalog = catalog or ServiceCatalog()
        self.coverage = coverage or ServiceAreaCoverage()

    @classmethod
    def default(cls):
        return cls(
            reservations=SlotReservationManager(),
            rate_limiter=RateLimiter(),
            audit=AuditLogger(),
            coupons=CouponValidator(),
            catalog=ServiceCatalog(),
            coverage=ServiceAreaCoverage(),
        )

    # -------------------- helpers --------------------
    @staticmethod
    def get_order(order_id, **filters) -> Order:
        try:
            pk = int(order_id)
        except (TypeError, ValueError):
            raise NotFound("Order not found.")
        order = Order.objects.filter(pk=pk, **filters).first()
        if order is None:
            raise NotFound("Order not found.")
        return order

    def _notify(self, order, previous, actor):
        results = order_status_changed.send_robust(
            sender=Order, order=order, previous=previous, actor=actor
        )
        for receiver, outcome in results:
            if isinstance(outcome, Exception):
                logger.error("order_status_changed receiver %r failed: %s", receiver, outcome)

    # -------------------- create --------------------
    def create_order(self, request: dict, actor=None) -> Order:
        """
        Place a new order in `pending`.

        Args:
            request: dict with REQUIRED_FIELDS plus optional coupon_code and
                processing_time_hours. Values are expected to be validated
                already (see orders.serializers.CreateOrderSerializer).
            actor: who is placing it; defaults to the requester.

        Raises:
            InvalidArgument: missing fields, items outside the provider's
                catalog, bad coordinates or an unusable coupon.
            FailedPrecondition: pickup or delivery outside the provider's areas.
            ResourceExhausted: rate limit hit, or the slot is full.
            NotFound: slot does not exist.
        """
        missing = [name for name in REQUIRED_FIELDS if not request.get(name)]
        if missing:
            raise InvalidArgument(f"Missing required fields: {', '.join(missing)}.")

        requester_id = str(request["requester_id"])
        provider_id = str(request["provider_id"])
        total_amount = Decimal(str(request["total_amount"]))

        # Recorded in its own transaction: failed attempts still count
        self.rate_limiter.check_and_record(
            RateLimiter.make_key(requester_id, "createOrder"),
            get_int_setting("ORDER_RATE_LIMIT", 5),
            get_int_setting("ORDER_RATE_WINDOW_SECONDS", 3600),
        )

        services = self.catalog.resolve_items(provider_id, request["items"])
        self.coverage.ensure_covered(provider_id, request["pickup_details"], "Pickup location")
        self.coverage.ensure_covered(provider_id, request["delivery_details"], "Delivery location")
        processing_time_hours = request.get("processing_time_hours") or self.catalog.processing_time_for(services)

        now = timezone.now()
        with transaction.atomic():
            self.reservations.reserve(request["slot_id"])

            discount = Decimal("0")
            applied_code = None
            coupon_code = (request.get("coupon_code") or "").strip()
            if coupon_code:
                result = self.coupons.validate(coupon_code, total_amount, now)
                discount = result.discount
                applied_code = result.applied_code

            pricing = dict(request["pricing"])
            pricing["discount"] = discount

            order = Order.objects.create(
                requester_id=requester_id,
                provider_id=provider_id,
                items=list(request["items"]),
                pickup_details=request["pickup_details"],
                delivery_details=request["delivery_details"],
                pricing=pricing,
                payment=request["payment"],
                coupon_code=applied_code,
                total_amount=total_amount - discount,
                slot_id=request["slot_id"],
                status=OrderStatus.PENDING,
                processing_time_hours=processing_time_hours,
                created_at=now,
                updated_at=now,
            )

        logger.info("Order %s created for %s (slot %s)", order.pk, requester_id, order.slot_id)
        self.audit.record(
            actor or requester_id,
            "order_created",
            {"order_id": order.pk, "total_amount": str(order.total_amount), "coupon_code": applied_code},
            {"provider_id": order.provider_id, "slot_id": order.slot_id},
        )
        return order

    # -------------------- status --------------------
    def update_status(self, order_id, provider_id, new_status, actor=None, processing_time_hours=None) -> Order:
        """
        Move an order along the state machine on behalf of its provider.

        Raises:
            InvalidArgument: new_status is not a status at all.
            NotFound: no such order for this provider.
            FailedPrecondition: edge not allowed, or the order moved meanwhile.
        """
        if not is_known_status(new_status):
            raise InvalidArgument(f"Unknown order status '{new_status}'.")

        order = self.get_order(order_id, provider_id=provider_id)
        previous = order.status

        if not can_transition(previous, new_status):
            raise FailedPrecondition(f"Invalid status transition from '{previous}' to '{new_status}'.")

        changes = {"status": new_status, "updated_at": timezone.now()}
        if processing_time_hours is not None:
            changes["processing_time_hours"] = processing_time_hours

        updated = Order.objects.filter(pk=order.pk, status=previous).update(**changes)
        if not updated:
            raise FailedPrecondition("Order status changed meanwhile. Reload and try again.")

        order.refresh_from_db()
        actor = actor or provider_id
        logger.info("Order %s: %s -> %s by %s", order.pk, previous, new_status, actor)

        self.audit.record(
            actor,
            "order_status_update",
            {"order_id": order.pk, "from": previous, "to": new_status},
            {"provider_id": provider_id},
        )
        self._notify(order, previous, actor)
        return order

    # -------------------- cancel --------------------
    def cancel_order(self, order_id, actor, reason: str = "", by_admin: bool = False) -> Order:
        """
        Cancel an order.

        - The requester can cancel until the order is out for delivery.
        - Admins can cancel from any non-terminal status.
        - Nobody can cancel a completed, cancelled or refunded order.
        Refunds are handled outside this engine, after the status change.
        """
        order = self.get_order(order_id)

        if not by_admin and str(actor) != order.requester_id:
            raise PermissionDenied("Not allowed to cancel this order.")

        previous = order.status
        if is_terminal(previous) or (not by_admin and previous in USER_NON_CANCELLABLE):
            raise FailedPrecondition("Order cannot be cancelled at this stage.")

        updated = Order.objects.filter(pk=order.pk, status=previous).update(
            status=OrderStatus.CANCELLED,
            cancellation_reason=reason or "",
            cancelled_by=CancelledBy.ADMIN if by_admin else CancelledBy.USER,
            updated_at=timezone.now(),
        )
        if not updated:
            raise FailedPrecondition("Order status changed meanwhile. Reload and try again.")

        order.refresh_from_db()
        logger.info("Order %s cancelled by %s (%s)", order.pk, actor, order.cancelled_by)

        self.audit.record(
            actor,
            "order_cancelled",
            {"order_id": order.pk, "reason": reason or "", "by_admin": bool(by_admin)},
            {"provider_id": order.provider_id, "requester_id": order.requester_id},
        )
        self._notify(order, previous, actor)
        return order

    # -------------------- list --------------------
    def list_orders(self, requester_id=None, provider_id=None):
        if requester_id:
            return Order.objects.filter(requester_id=requester_id).order_by("-created_at", "-id")
        if provider_id:
            return Order.objects.filter(provider_id=provider_id).order_by("-created_at", "-id")
        raise InvalidArgument("Pass either a requester or a provider.")
