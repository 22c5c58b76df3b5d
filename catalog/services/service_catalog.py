"""
service_catalog.py
------------------
Checks order line items against the provider's catalog.

Every item's `service` must be the id of an active, non-deleted Service
owned by the order's provider.
"""

import logging

from core.errors import InvalidArgument

from ..models import Service

logger = logging.getLogger(__name__)


class ServiceCatalog:
    def resolve_items(self, provider_id, items):
        """
        Return the Service rows referenced by `items`, in item order.

        Raises:
            InvalidArgument: an item names no service, or a service that the
                provider does not offer (unknown, inactive or deleted).
        """
        wanted = []
        for item in items:
            try:
                wanted.append(int(item["service"]))
            except (KeyError, TypeError, ValueError):
                raise InvalidArgument("Each item needs a numeric 'service' id.")

        found = Service.objects.in_bulk(set(wanted))
        offered = {
            pk: service for pk, service in found.items()
            if service.provider_id == provider_id and service.is_active and not service.is_deleted
        }
        unknown = sorted({pk for pk in wanted if pk not in offered})
        if unknown:
            logger.info("order items for %s reference unavailable services %s", provider_id, unknown)
            raise InvalidArgument(
                f"Unknown or unavailable services: {', '.join(str(pk) for pk in unknown)}."
            )
        return [offered[pk] for pk in wanted]

    @staticmethod
    def processing_time_for(services):
        """Longest processing time among the services; None when none is set."""
        hours = max((s.processing_time_hours for s in services), default=0)
        return hours or None
