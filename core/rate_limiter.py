"""
rate_limiter.py
---------------
Sliding-window rate limiter backed by RateLimitBucket rows.

Each bucket keeps the epoch timestamps of recent attempts. On every check the
list is pruned to the window; if what is left has already reached the limit
the attempt is refused, otherwise it is recorded.
"""

import logging
import time

from django.db import transaction

from .errors import ResourceExhausted
from .models import RateLimitBucket

logger = logging.getLogger(__name__)


class RateLimiter:
    @staticmethod
    def make_key(actor: str, action: str) -> str:
        return f"{actor}_{action}"

    @transaction.atomic
    def check_and_record(self, key: str, limit: int, window_seconds: int, now: float | None = None) -> None:
        """
        Raises:
            ResourceExhausted: if `limit` attempts already happened inside the window.
        """
        now = time.time() if now is None else now
        window_start = now - window_seconds

        bucket, _ = RateLimitBucket.objects.select_for_update().get_or_create(key=key)
        recent = [t for t in (bucket.timestamps or []) if t > window_start]

        if len(recent) >= limit:
            logger.info("Rate limit hit for %s (%d in %ds)", key, len(recent), window_seconds)
            raise ResourceExhausted("Rate limit exceeded. Please try again later.")

        recent.append(now)
        bucket.timestamps = recent
        bucket.save(update_fields=["timestamps", "updated_at"])
