"""
lookup.py
---------
Resolve a policy value: SystemSetting row first, then settings.MARKETPLACE,
then the caller's default.
"""

import logging

from django.conf import settings

from .models import SystemSetting

logger = logging.getLogger(__name__)


def get_int_setting(key: str, default: int) -> int:
    fallback = getattr(settings, "MARKETPLACE", {}).get(key, default)

    row = SystemSetting.objects.filter(key=key).first()
    if row is None:
        return int(fallback)
    try:
        return int(row.value.strip())
    except ValueError:
        logger.warning("SystemSetting %s=%r is not an integer; using %s", key, row.value, fallback)
        return int(fallback)
