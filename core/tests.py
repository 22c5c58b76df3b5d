from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from rest_framework import exceptions

from .audit import AuditLogger
from .errors import (
    FailedPrecondition,
    ResourceExhausted,
    marketplace_exception_handler,
)
from .models import AuditLogEntry, RateLimitBucket
from .rate_limiter import RateLimiter


class AuditLoggerTests(TestCase):
    def test_record_appends_entry(self):
        entry = AuditLogger().record(
            "user-1", "order_cancelled", {"order_id": 7}, {"provider_id": "p-1"}
        )
        self.assertIsNotNone(entry)
        self.assertEqual(AuditLogEntry.objects.count(), 1)
        stored = AuditLogEntry.objects.get()
        self.assertEqual(stored.details, {"order_id": 7})
        self.assertEqual(stored.context, {"provider_id": "p-1"})

    def test_entries_are_write_once(self):
        entry = AuditLogger().record("user-1", "order_created")
        entry.action = "tampered"
        with self.assertRaises(ValueError):
            entry.save()
        with self.assertRaises(ValueError):
            entry.delete()
        self.assertEqual(AuditLogEntry.objects.get().action, "order_created")

    def test_write_failure_is_swallowed(self):
        with mock.patch.object(AuditLogEntry.objects, "create", side_effect=DatabaseError("down")):
            with self.assertLogs("core.audit", level="ERROR"):
                result = AuditLogger().record("user-1", "order_created")
        self.assertIsNone(result)


class RateLimiterTests(TestCase):
    def setUp(self):
        self.limiter = RateLimiter()
        self.key = RateLimiter.make_key("user-1", "createOrder")

    def test_allows_up_to_limit_then_refuses(self):
        for i in range(5):
            self.limiter.check_and_record(self.key, 5, 3600, now=1000.0 + i)
        with self.assertRaises(ResourceExhausted):
            self.limiter.check_and_record(self.key, 5, 3600, now=1010.0)
        # refused attempt is not recorded
        self.assertEqual(len(RateLimitBucket.objects.get(key=self.key).timestamps), 5)

    def test_window_slides(self):
        for i in range(5):
            self.limiter.check_and_record(self.key, 5, 3600, now=1000.0 + i)
        # first attempt (t=1000) falls out of the window
        self.limiter.check_and_record(self.key, 5, 3600, now=4600.5)
        bucket = RateLimitBucket.objects.get(key=self.key)
        self.assertNotIn(1000.0, bucket.timestamps)
        self.assertEqual(len(bucket.timestamps), 5)

    def test_keys_are_independent(self):
        other = RateLimiter.make_key("user-2", "createOrder")
        for i in range(5):
            self.limiter.check_and_record(self.key, 5, 3600, now=1000.0 + i)
        self.limiter.check_and_record(other, 5, 3600, now=1005.0)


class ExceptionHandlerTests(TestCase):
    def test_marketplace_error_envelope(self):
        response = marketplace_exception_handler(FailedPrecondition("Invalid status transition."), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            response.data,
            {"success": False, "code": "failed-precondition", "detail": "Invalid status transition."},
        )

    def test_validation_error_keeps_field_errors(self):
        exc = exceptions.ValidationError({"slot_id": ["This field is required."]})
        response = marketplace_exception_handler(exc, {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid-argument")
        self.assertIn("slot_id", response.data["errors"])

    def test_unexpected_error_hides_details(self):
        with self.assertLogs("core.errors", level="ERROR"):
            response = marketplace_exception_handler(RuntimeError("secret stack"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["code"], "internal")
        self.assertNotIn("secret", response.data["detail"])
