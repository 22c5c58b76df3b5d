from smtplib import SMTPException
from unittest import mock

from django.contrib.auth.models import User
from django.core import mail
from django.test import TestCase
from rest_framework.test import APIClient

from core.errors import FailedPrecondition
from orders.services.order_lifecycle import OrderLifecycleEngine
from orders.tests.utils import make_order
from .models import Notification
from .services.dispatcher import NotificationDispatcher


class DispatcherTests(TestCase):
    def test_email_sent_to_users_address(self):
        User.objects.create_user(username="jane", email="jane@example.com", password="pass123")

        note = NotificationDispatcher().notify("jane", "Hello", "Your order moved.")

        self.assertEqual(note.status, "sent")
        self.assertIsNotNone(note.sent_at)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["jane@example.com"])
        self.assertEqual(mail.outbox[0].subject, "Hello")

    def test_unknown_recipient_is_marked_failed(self):
        note = NotificationDispatcher().notify("ghost", "Hello", "Nobody home.")
        self.assertEqual(note.status, "failed")
        self.assertEqual(len(mail.outbox), 0)

    def test_smtp_error_is_recorded_not_raised(self):
        User.objects.create_user(username="jane", email="jane@example.com", password="pass123")
        with mock.patch("notifications.services.dispatcher.send_mail", side_effect=SMTPException("421")):
            note = NotificationDispatcher().notify("jane", "Hello", "Your order moved.")
        self.assertEqual(note.status, "failed")

    def test_sms_is_logged_only(self):
        note = NotificationDispatcher().notify("jane", "Hello", "Text me.", channel="sms")
        self.assertEqual(note.status, "sent")
        self.assertEqual(len(mail.outbox), 0)


class OrderStatusNotificationTests(TestCase):
    def setUp(self):
        User.objects.create_user(username="jane", email="jane@example.com", password="pass123")
        User.objects.create_user(username="acme-laundry", email="ops@acme.example", password="pass123")
        self.engine = OrderLifecycleEngine.default()

    def test_email_sent_when_order_out_for_delivery(self):
        order = make_order(status="in-progress")
        self.engine.update_status(order.pk, "acme-laundry", "out-for-delivery")

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["jane@example.com"])
        self.assertIn("out for delivery", mail.outbox[0].body)

    def test_cancellation_reaches_both_sides(self):
        order = make_order()
        self.engine.cancel_order(order.pk, "jane", reason="Travelling")

        recipients = sorted(message.to[0] for message in mail.outbox)
        self.assertEqual(recipients, ["jane@example.com", "ops@acme.example"])
        jane_mail = next(m for m in mail.outbox if m.to == ["jane@example.com"])
        self.assertIn("Reason: Travelling", jane_mail.body)

    def test_no_mail_for_failed_transition(self):
        order = make_order(status="completed")
        with self.assertRaises(FailedPrecondition):
            self.engine.update_status(order.pk, "acme-laundry", "cancelled")
        self.assertEqual(len(mail.outbox), 0)
        self.assertFalse(Notification.objects.exists())


class NotificationApiTests(TestCase):
    def test_lists_own_notifications_only(self):
        jane = User.objects.create_user(username="jane", password="pass123")
        Notification.objects.create(recipient_id="jane", title="Mine", message="...")
        Notification.objects.create(recipient_id="bob", title="Not mine", message="...")

        client = APIClient()
        client.force_authenticate(jane)
        response = client.get("/api/notifications/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([n["title"] for n in response.data], ["Mine"])
