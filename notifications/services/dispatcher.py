"""
NotificationDispatcher
----------------------
Stores a Notification and tries to deliver it.

Delivery:
- email through Django's configured EMAIL_BACKEND (console in dev, SMTP in prod)
- the recipient's address is the email on the auth User whose username is the
  recipient id; no address means the notification is marked failed
- sms / push are recorded and logged only; no gateway is wired up

We never let a delivery exception bubble up and break the request.
"""

import logging
from smtplib import SMTPException

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.utils import timezone

from ..models import Notification

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def _email_for(self, recipient_id: str) -> str:
        User = get_user_model()
        user = User.objects.filter(**{User.USERNAME_FIELD: recipient_id}).only("email").first()
        return (getattr(user, "email", "") or "").strip()

    def notify(self, recipient_id: str, title: str, message: str, kind: str = "order_status", channel: str = "email") -> Notification:
        note = Notification.objects.create(
            recipient_id=recipient_id,
            kind=kind,
            title=title,
            message=message,
            channel=channel,
        )

        if channel != "email":
            logger.info("[%s] to %s | %s", channel, recipient_id, title)
            delivered = True
        else:
            delivered = self._send_email(recipient_id, title, message)

        note.status = "sent" if delivered else "failed"
        note.sent_at = timezone.now() if delivered else None
        note.save(update_fields=["status", "sent_at"])
        return note

    def _send_email(self, recipient_id, subject, body) -> bool:
        to_email = self._email_for(recipient_id)
        if not to_email:
            logger.warning("No email address for %s; notification not delivered", recipient_id)
            return False
        try:
            send_mail(
                subject=subject,
                message=body,
                from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
                recipient_list=[to_email],
                fail_silently=False,  # raise so we can log; we still catch it below
            )
        except (SMTPException, OSError) as e:
            logger.error("[email] send error to %s: %s", to_email, e)
            return False
        return True
