from datetime import timedelta
from decimal import Decimal
from itertools import product
from unittest import mock

from django.test import TestCase
from django.utils import timezone

from catalog.tests import create_service
from core.errors import (
    FailedPrecondition,
    InvalidArgument,
    NotFound,
    PermissionDenied,
    ResourceExhausted,
)
from core.models import AuditLogEntry
from coupons.tests import create_coupon
from notifications.models import Notification
from orders.models import Order
from orders.services.order_lifecycle import OrderLifecycleEngine
from orders.state import ALLOWED_TRANSITIONS, OrderStatus, TERMINAL_STATUSES
from slots.tests import active_sub_slot, create_slot

from .utils import make_order, order_request


class CreateOrderTests(TestCase):
    def setUp(self):
        self.engine = OrderLifecycleEngine.default()

    def test_happy_path(self):
        slot = create_slot(max_bookings=1)
        order = self.engine.create_order(order_request(slot))

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.total_amount, Decimal("200.00"))
        self.assertIsNone(order.coupon_code)
        self.assertEqual(Decimal(order.pricing["discount"]), Decimal("0"))
        self.assertEqual(order.created_at, order.updated_at)
        self.assertEqual(active_sub_slot(slot).current_bookings, 1)
        self.assertTrue(AuditLogEntry.objects.filter(action="order_created", details__order_id=order.pk).exists())

    def test_missing_fields(self):
        slot = create_slot()
        request = order_request(slot)
        del request["pickup_details"]
        with self.assertRaises(InvalidArgument) as ctx:
            self.engine.create_order(request)
        self.assertIn("pickup_details", str(ctx.exception.detail))
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)

    def test_unknown_slot(self):
        slot = create_slot()
        with self.assertRaises(NotFound):
            self.engine.create_order(order_request(slot, slot_id=slot.id + 1000))
        self.assertEqual(Order.objects.count(), 0)

    def test_slot_exhaustion(self):
        slot = create_slot(max_bookings=1)
        self.engine.create_order(order_request(slot, requester_id="jane"))
        with self.assertRaises(ResourceExhausted):
            self.engine.create_order(order_request(slot, requester_id="bob"))
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(active_sub_slot(slot).current_bookings, 1)

    def test_competing_order_lands_between_slot_read_and_write(self):
        slot = create_slot(max_bookings=1)
        # jane's engine reads the slot while it is still free...
        seen_by_jane = active_sub_slot(slot)
        # ...then bob's order goes through before jane's write
        bob_order = OrderLifecycleEngine.default().create_order(order_request(slot, requester_id="bob"))

        real_read = self.engine.reservations._active_sub_slot
        reads = []

        def stale_first_read(slot_id):
            reads.append(slot_id)
            return seen_by_jane if len(reads) == 1 else real_read(slot_id)

        with mock.patch.object(self.engine.reservations, "_active_sub_slot", side_effect=stale_first_read):
            with self.assertRaises(ResourceExhausted):
                self.engine.create_order(order_request(slot, requester_id="jane"))

        self.assertEqual(len(reads), 2)
        self.assertEqual(list(Order.objects.values_list("pk", flat=True)), [bob_order.pk])
        self.assertEqual(active_sub_slot(slot).current_bookings, 1)

    def test_rate_limit(self):
        slot = create_slot(max_bookings=10)
        for _ in range(5):
            self.engine.create_order(order_request(slot))
        with self.assertRaises(ResourceExhausted):
            self.engine.create_order(order_request(slot))
        self.assertEqual(Order.objects.count(), 5)
        self.assertEqual(active_sub_slot(slot).current_bookings, 5)
        # other requesters are unaffected
        self.engine.create_order(order_request(slot, requester_id="bob"))

    def test_rejected_attempts_still_count_towards_rate_limit(self):
        slot = create_slot(max_bookings=10)
        for _ in range(5):
            with self.assertRaises(NotFound):
                self.engine.create_order(order_request(slot, slot_id=slot.id + 1000))
        with self.assertRaises(ResourceExhausted):
            self.engine.create_order(order_request(slot))
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)

    def test_coupon_applied(self):
        create_coupon(code="SAVE50", max_discount="50.00", min_value="100.00")
        slot = create_slot()
        order = self.engine.create_order(
            order_request(slot, total_amount=Decimal("500.00"), coupon_code="SAVE50")
        )
        order.refresh_from_db()
        self.assertEqual(order.coupon_code, "SAVE50")
        self.assertEqual(order.total_amount, Decimal("450.00"))
        self.assertEqual(Decimal(order.pricing["discount"]), Decimal("50.00"))

    def test_expired_coupon_creates_nothing_and_frees_slot(self):
        create_coupon(code="OLD", valid_till=timezone.now() - timedelta(days=1))
        slot = create_slot(max_bookings=1)
        with self.assertRaises(InvalidArgument):
            self.engine.create_order(order_request(slot, coupon_code="OLD"))
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)

        # slot is still bookable
        self.engine.create_order(order_request(slot))
        self.assertEqual(active_sub_slot(slot).current_bookings, 1)

    def test_unknown_service_reserves_nothing(self):
        slot = create_slot(max_bookings=1)
        foreign = create_service(provider_id="other-laundry")
        request = order_request(slot)
        request["items"].append({"service": foreign.pk, "quantity": 1, "unit_price": Decimal("10.00")})

        with self.assertRaises(InvalidArgument):
            self.engine.create_order(request)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)

    def test_pickup_outside_provider_areas(self):
        slot = create_slot(max_bookings=1)
        airport = {"address": "Airport Rd", "latitude": 13.1986, "longitude": 77.7066}
        with self.assertRaises(FailedPrecondition):
            self.engine.create_order(order_request(slot, pickup_details=airport))
        with self.assertRaises(InvalidArgument):
            self.engine.create_order(order_request(slot, pickup_details={"address": "12 Lake Rd"}))
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)

    def test_processing_time_defaults_from_services(self):
        slot = create_slot(max_bookings=2)
        self.assertEqual(self.engine.create_order(order_request(slot)).processing_time_hours, 48)
        explicit = self.engine.create_order(order_request(slot, processing_time_hours=6))
        self.assertEqual(explicit.processing_time_hours, 6)

    def test_collaborators_are_injected(self):
        reservations = mock.Mock()
        rate_limiter = mock.Mock()
        audit = mock.Mock()
        catalog = mock.Mock()
        catalog.processing_time_for.return_value = 12
        coverage = mock.Mock()
        engine = OrderLifecycleEngine(reservations, rate_limiter, audit, mock.Mock(), catalog=catalog, coverage=coverage)
        slot = create_slot()
        request = order_request(slot)

        order = engine.create_order(request)

        reservations.reserve.assert_called_once_with(slot.id)
        rate_limiter.check_and_record.assert_called_once_with("jane_createOrder", 5, 3600)
        catalog.resolve_items.assert_called_once_with("acme-laundry", request["items"])
        coverage.ensure_covered.assert_has_calls([
            mock.call("acme-laundry", request["pickup_details"], "Pickup location"),
            mock.call("acme-laundry", request["delivery_details"], "Delivery location"),
        ])
        audit.record.assert_called_once()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.processing_time_hours, 12)


class UpdateStatusTests(TestCase):
    def setUp(self):
        self.engine = OrderLifecycleEngine.default()

    def test_allowed_transition(self):
        order = make_order(status=OrderStatus.PENDING)
        before = order.updated_at
        updated = self.engine.update_status(order.pk, "acme-laundry", "processing")
        self.assertEqual(updated.status, OrderStatus.PROCESSING)
        self.assertGreaterEqual(updated.updated_at, before)

        entry = AuditLogEntry.objects.get(action="order_status_update")
        self.assertEqual(entry.details, {"order_id": order.pk, "from": "pending", "to": "processing"})
        self.assertEqual(entry.context, {"provider_id": "acme-laundry"})

    def test_full_happy_lifecycle(self):
        order = make_order()
        for step in ["processing", "out-for-pickup", "in-progress", "out-for-delivery", "completed"]:
            order = self.engine.update_status(order.pk, "acme-laundry", step)
        self.assertEqual(order.status, OrderStatus.COMPLETED)

    def test_every_disallowed_pair_fails_and_changes_nothing(self):
        for current, target in product(OrderStatus.values, OrderStatus.values):
            if target in ALLOWED_TRANSITIONS[OrderStatus(current)]:
                continue
            order = make_order(status=current)
            with self.subTest(current=current, target=target):
                with self.assertRaises(FailedPrecondition):
                    self.engine.update_status(order.pk, "acme-laundry", target)
                order.refresh_from_db()
                self.assertEqual(order.status, current)

    def test_unknown_status_value(self):
        order = make_order()
        with self.assertRaises(InvalidArgument):
            self.engine.update_status(order.pk, "acme-laundry", "teleported")

    def test_wrong_provider_is_not_found(self):
        order = make_order()
        with self.assertRaises(NotFound):
            self.engine.update_status(order.pk, "someone-else", "processing")
        with self.assertRaises(NotFound):
            self.engine.update_status("not-a-number", "acme-laundry", "processing")

    def test_sets_processing_estimate(self):
        order = make_order(status=OrderStatus.OUT_FOR_PICKUP)
        updated = self.engine.update_status(order.pk, "acme-laundry", "in-progress", processing_time_hours=4)
        self.assertEqual(updated.processing_time_hours, 4)

    def test_concurrent_change_is_not_clobbered(self):
        order = make_order(status=OrderStatus.IN_PROGRESS)
        stale = Order.objects.get(pk=order.pk)
        # someone cancels after we read
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.CANCELLED)

        with mock.patch.object(self.engine, "get_order", return_value=stale):
            with self.assertRaises(FailedPrecondition):
                self.engine.update_status(order.pk, "acme-laundry", "out-for-delivery")

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_notification_failure_does_not_fail_update(self):
        order = make_order()
        with mock.patch(
            "notifications.signals.NotificationDispatcher.notify", side_effect=RuntimeError("smtp down")
        ):
            with self.assertLogs("orders.services.order_lifecycle", level="ERROR"):
                updated = self.engine.update_status(order.pk, "acme-laundry", "processing")
        self.assertEqual(updated.status, OrderStatus.PROCESSING)

    def test_requester_is_notified(self):
        order = make_order()
        self.engine.update_status(order.pk, "acme-laundry", "processing")
        note = Notification.objects.get(recipient_id="jane")
        self.assertIn("being processed", note.message)


class CancelOrderTests(TestCase):
    def setUp(self):
        self.engine = OrderLifecycleEngine.default()

    def test_requester_cancels(self):
        order = make_order(status=OrderStatus.PROCESSING)
        cancelled = self.engine.cancel_order(order.pk, "jane", reason="Changed my mind")
        self.assertEqual(cancelled.status, OrderStatus.CANCELLED)
        self.assertEqual(cancelled.cancelled_by, "user")
        self.assertEqual(cancelled.cancellation_reason, "Changed my mind")

        entry = AuditLogEntry.objects.get(action="order_cancelled")
        self.assertEqual(entry.details["reason"], "Changed my mind")
        self.assertFalse(entry.details["by_admin"])
        self.assertEqual(entry.context, {"provider_id": "acme-laundry", "requester_id": "jane"})

    def test_provider_hears_about_cancellation(self):
        order = make_order()
        self.engine.cancel_order(order.pk, "jane")
        self.assertTrue(Notification.objects.filter(recipient_id="acme-laundry", kind="order_cancelled").exists())
        self.assertTrue(Notification.objects.filter(recipient_id="jane", kind="order_cancelled").exists())

    def test_missing_order(self):
        with self.assertRaises(NotFound):
            self.engine.cancel_order(424242, "jane")

    def test_other_user_cannot_cancel(self):
        order = make_order()
        with self.assertRaises(PermissionDenied):
            self.engine.cancel_order(order.pk, "mallory")
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_admin_cancels_anyones_order(self):
        order = make_order()
        cancelled = self.engine.cancel_order(order.pk, "admin", reason="Fraud", by_admin=True)
        self.assertEqual(cancelled.cancelled_by, "admin")

    def test_out_for_delivery_admin_only(self):
        order = make_order(status=OrderStatus.OUT_FOR_DELIVERY)
        with self.assertRaises(FailedPrecondition):
            self.engine.cancel_order(order.pk, "jane")
        cancelled = self.engine.cancel_order(order.pk, "admin", by_admin=True)
        self.assertEqual(cancelled.status, OrderStatus.CANCELLED)

    def test_terminal_states_are_final(self):
        for status in TERMINAL_STATUSES:
            order = make_order(status=status)
            with self.subTest(status=status):
                for by_admin in (False, True):
                    with self.assertRaises(FailedPrecondition):
                        self.engine.cancel_order(order.pk, "jane", by_admin=by_admin)
                for target in OrderStatus.values:
                    with self.assertRaises(FailedPrecondition):
                        self.engine.update_status(order.pk, "acme-laundry", target)
                order.refresh_from_db()
                self.assertEqual(order.status, status)


class ListOrdersTests(TestCase):
    def test_by_requester_or_provider(self):
        engine = OrderLifecycleEngine.default()
        make_order(requester_id="jane", provider_id="p1")
        make_order(requester_id="jane", provider_id="p2")
        make_order(requester_id="bob", provider_id="p1")

        self.assertEqual(engine.list_orders(requester_id="jane").count(), 2)
        self.assertEqual(engine.list_orders(provider_id="p1").count(), 2)
        with self.assertRaises(InvalidArgument):
            engine.list_orders()
