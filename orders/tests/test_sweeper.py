from datetime import timedelta
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import DatabaseError
from django.db.models import QuerySet
from django.test import TestCase
from django.utils import timezone

from core.models import AuditLogEntry
from notifications.models import Notification
from orders.services.status_sweeper import SWEEPER_ACTOR, sweep_stale_orders
from orders.state import OrderStatus

from .utils import make_order


def in_progress(hours_ago, processing_time_hours=2, **fields):
    return make_order(
        status=OrderStatus.IN_PROGRESS,
        processing_time_hours=processing_time_hours,
        updated_at=timezone.now() - timedelta(hours=hours_ago),
        **fields,
    )


class StatusSweeperTests(TestCase):
    def test_promotes_ready_orders(self):
        order = in_progress(hours_ago=3)
        now = timezone.now()

        summary = sweep_stale_orders(now=now)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.OUT_FOR_DELIVERY)
        self.assertEqual(order.updated_at, now)
        self.assertEqual(summary["checked"], 1)
        self.assertEqual(summary["promoted"], 1)

        entry = AuditLogEntry.objects.get(action="order_status_update")
        self.assertEqual(entry.actor, SWEEPER_ACTOR)
        self.assertEqual(entry.details["to"], "out-for-delivery")
        self.assertTrue(entry.context["automated"])
        self.assertTrue(Notification.objects.filter(recipient_id="jane").exists())

    def test_boundary_is_inclusive(self):
        order = in_progress(hours_ago=0)
        sweep_stale_orders(now=order.updated_at + timedelta(hours=2))
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.OUT_FOR_DELIVERY)

    def test_waits_until_window_elapsed(self):
        order = in_progress(hours_ago=1)
        summary = sweep_stale_orders()
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.IN_PROGRESS)
        self.assertEqual(summary["waiting"], 1)

    def test_skips_orders_without_estimate(self):
        order = in_progress(hours_ago=10, processing_time_hours=None)
        summary = sweep_stale_orders()
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.IN_PROGRESS)
        self.assertEqual(summary["skipped"], 1)

    def test_ignores_other_statuses(self):
        cancelled = make_order(
            status=OrderStatus.CANCELLED,
            processing_time_hours=1,
            updated_at=timezone.now() - timedelta(days=1),
        )
        summary = sweep_stale_orders()
        cancelled.refresh_from_db()
        self.assertEqual(cancelled.status, OrderStatus.CANCELLED)
        self.assertEqual(summary["checked"], 0)

    def test_one_failure_does_not_stop_the_run(self):
        first = in_progress(hours_ago=5)
        second = in_progress(hours_ago=4)
        real_update = QuerySet.update
        calls = []

        def flaky_update(qs, **kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise DatabaseError("deadlock detected")
            return real_update(qs, **kwargs)

        with mock.patch.object(QuerySet, "update", autospec=True, side_effect=flaky_update):
            with self.assertLogs("orders.services.status_sweeper", level="ERROR"):
                summary = sweep_stale_orders()

        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, OrderStatus.IN_PROGRESS)
        self.assertEqual(second.status, OrderStatus.OUT_FOR_DELIVERY)
        self.assertEqual(summary["failed"], 1)
        self.assertEqual(summary["promoted"], 1)


class SweepCommandTests(TestCase):
    def test_single_run_reports_summary(self):
        in_progress(hours_ago=3)
        in_progress(hours_ago=1)
        out = StringIO()

        call_command("sweep_stale_orders", stdout=out)

        output = out.getvalue()
        self.assertIn("Promoted=1", output)
        self.assertIn("Waiting=1", output)
