"""
audit.py
--------
Best-effort audit trail for order and session state changes.

Notes:
- record() runs in its own savepoint, so a failed insert never poisons the
  caller's transaction and never reaches the API caller. Failures are logged.
"""

import logging

from django.db import DatabaseError, transaction

from .models import AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLogger:
    def record(self, actor, action: str, details=None, context=None):
        """
        Append one AuditLogEntry.

        Returns:
            The created entry, or None if the write failed.
        """
        try:
            with transaction.atomic():
                return AuditLogEntry.objects.create(
                    actor=str(actor or ""),
                    action=action,
                    details=details or {},
                    context=context or {},
                )
        except DatabaseError as e:
            logger.error("Audit log write failed (action=%s actor=%s): %s", action, actor, e)
            return None
