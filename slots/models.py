# slots/models.py
#
# Purpose:
# - Where and when a provider can pick up / deliver.
#
# Design highlights:
# - ServiceableArea: circular geofence (center + radius in km) owned by a provider.
# - Slot: a bookable window inside an area, split into SubSlots.
# - SubSlot: capacity ceiling (max_bookings) and usage counter (current_bookings).
#   • current_bookings only moves through SlotReservationManager.reserve()
#   • the check constraint keeps current_bookings <= max_bookings at DB level too
#
import math

from django.core.validators import MinValueValidator
from django.db import models


EARTH_RADIUS_KM = 6371


def haversine_km(lat1, lon1, lat2, lon2) -> float:
    """Great-circle distance between two points, in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


# -------------------------
# Serviceable area
# -------------------------
class ServiceableArea(models.Model):
    """
    A geofenced region a provider operates in.
    Names are unique per provider among non-deleted areas (checked by the API).
    """
    provider_id = models.CharField(max_length=128, db_index=True)
    name = models.CharField(max_length=200)
    center_latitude = models.FloatField()
    center_longitude = models.FloatField()
    radius_km = models.FloatField(validators=[MinValueValidator(0.01)])
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.provider_id})"

    def contains(self, latitude: float, longitude: float) -> bool:
        distance = haversine_km(latitude, longitude, self.center_latitude, self.center_longitude)
        return distance <= self.radius_km


# -------------------------
# Slot and its sub-slots
# -------------------------
class Slot(models.Model):
    area = models.ForeignKey(ServiceableArea, on_delete=models.CASCADE, related_name="slots")
    date = models.DateField()
    label = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date", "id"]

    def __str__(self):
        return f"{self.area.name} {self.date} {self.label}".strip()


class SubSlot(models.Model):
    slot = models.ForeignKey(Slot, on_delete=models.CASCADE, related_name="sub_slots")
    position = models.PositiveSmallIntegerField(default=0)
    start_time = models.TimeField()
    end_time = models.TimeField()
    max_bookings = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    current_bookings = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=False)

    class Meta:
        ordering = ["slot_id", "position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_bookings__lte=models.F("max_bookings")),
                name="subslot_bookings_within_capacity",
            ),
        ]

    def __str__(self):
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M} ({self.current_bookings}/{self.max_bookings})"

    @property
    def is_full(self) -> bool:
        return self.current_bookings >= self.max_bookings
