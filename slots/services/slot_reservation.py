"""
slot_reservation.py
-------------------
Reserves one unit of capacity on a slot's active sub-slot.

This is the only thing standing between the marketplace and an overbooked
pickup window, so the increment is a single guarded UPDATE:

    UPDATE subslot SET current_bookings = current_bookings + 1
     WHERE id = <active> AND is_active AND current_bookings < max_bookings

The database applies the guard and the increment together, so concurrent
reservations simply queue up behind each other until the sub-slot is full.
Zero rows updated means the sub-slot filled up or was switched off after we
read it; we re-read to tell which. Only the second case is retried (bounded).
Never replace this with a read-check-save sequence.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from configmgr.lookup import get_int_setting
from core.errors import Internal, NotFound, ResourceExhausted

from ..models import Slot, SubSlot

logger = logging.getLogger(__name__)


class SlotReservationManager:
    def __init__(self, max_retries: int | None = None):
        self.max_retries = max_retries

    def _retries(self) -> int:
        if self.max_retries is not None:
            return self.max_retries
        return get_int_setting("SLOT_RESERVATION_MAX_RETRIES", 5)

    def _active_sub_slot(self, slot_id):
        return (
            SubSlot.objects.filter(slot_id=slot_id, is_active=True)
            .order_by("position", "id")
            .first()
        )

    def reserve(self, slot_id) -> SubSlot:
        """
        Reserve one booking on the slot's active sub-slot.

        Args:
            slot_id: primary key of an existing Slot.

        Returns:
            The SubSlot that was incremented (with the new count).

        Raises:
            NotFound: slot does not exist.
            ResourceExhausted: no active sub-slot, or it is already full.
            Internal: the active sub-slot kept being switched off between read
                and write, more often than the retry limit allows.
        """
        attempts = max(1, self._retries())

        with transaction.atomic():
            if not Slot.objects.filter(pk=slot_id).exists():
                raise NotFound("Slot not found.")

            for attempt in range(1, attempts + 1):
                sub = self._active_sub_slot(slot_id)
                if sub is None or sub.is_full:
                    raise ResourceExhausted("Slot is fully booked.")

                won = SubSlot.objects.filter(
                    pk=sub.pk,
                    is_active=True,
                    current_bookings__lt=F("max_bookings"),
                ).update(current_bookings=F("current_bookings") + 1)

                if won:
                    Slot.objects.filter(pk=slot_id).update(updated_at=timezone.now())
                    sub.refresh_from_db(fields=["current_bookings"])
                    logger.info(
                        "Reserved slot %s sub-slot %s (%d/%d)",
                        slot_id, sub.pk, sub.current_bookings, sub.max_bookings,
                    )
                    return sub

                # full now, or switched off: the next read decides
                logger.debug("Slot %s sub-slot %s changed under us (attempt %d)", slot_id, sub.pk, attempt)

        logger.warning("Gave up reserving slot %s after %d attempts", slot_id, attempts)
        raise Internal("Could not reserve the slot right now. Please try again.")
