"""
coverage.py
-----------
Answers "does this provider serve that point?" against the provider's
active, non-deleted serviceable areas.

Used by order creation (pickup and delivery must both be covered), by the
/api/areas/coverage/ lookup and by saved user addresses.
"""

import logging

from core.errors import FailedPrecondition, InvalidArgument

from ..models import ServiceableArea

logger = logging.getLogger(__name__)


def read_location(details, label="location"):
    """
    Pull (latitude, longitude) out of a details dict.

    Raises:
        InvalidArgument: either coordinate is missing, not a number or out of range.
    """
    try:
        latitude = float(details["latitude"])
        longitude = float(details["longitude"])
    except (KeyError, TypeError, ValueError):
        raise InvalidArgument(f"{label} needs numeric latitude and longitude.")
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise InvalidArgument(f"{label} coordinates are out of range.")
    return latitude, longitude


class ServiceAreaCoverage:
    def covering_area(self, provider_id, latitude, longitude):
        """First active area of the provider containing the point, or None."""
        areas = ServiceableArea.objects.filter(
            provider_id=provider_id, is_active=True, is_deleted=False
        ).order_by("id")
        for area in areas:
            if area.contains(latitude, longitude):
                return area
        return None

    def ensure_covered(self, provider_id, details, label):
        """
        Raises:
            InvalidArgument: bad coordinates in `details`.
            FailedPrecondition: the point is outside every area of the provider.
        """
        latitude, longitude = read_location(details, label)
        area = self.covering_area(provider_id, latitude, longitude)
        if area is None:
            logger.info("%s (%s, %s) outside areas of %s", label, latitude, longitude, provider_id)
            raise FailedPrecondition(f"{label} is outside the provider's serviceable area.")
        return area
