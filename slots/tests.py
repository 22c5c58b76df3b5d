import datetime
import threading
import unittest
from unittest import mock

from django.contrib.auth.models import User
from django.db import connection
from django.test import TestCase, TransactionTestCase
from rest_framework.test import APIClient

from core.errors import FailedPrecondition, Internal, InvalidArgument, NotFound, ResourceExhausted
from .models import ServiceableArea, Slot, SubSlot
from .services.coverage import ServiceAreaCoverage
from .services.slot_reservation import SlotReservationManager


def create_slot(max_bookings=1, current_bookings=0, is_active=True, provider_id="acme-laundry"):
    """Area + slot with one active sub-slot, plus an inactive one before it."""
    area, _ = ServiceableArea.objects.get_or_create(
        provider_id=provider_id,
        name="Downtown",
        defaults={"center_latitude": 12.9716, "center_longitude": 77.5946, "radius_km": 5},
    )
    slot = Slot.objects.create(area=area, date=datetime.date(2026, 11, 2), label="Morning")
    SubSlot.objects.create(
        slot=slot, position=0,
        start_time=datetime.time(7, 0), end_time=datetime.time(8, 0),
        max_bookings=3, current_bookings=0, is_active=False,
    )
    SubSlot.objects.create(
        slot=slot, position=1,
        start_time=datetime.time(8, 0), end_time=datetime.time(10, 0),
        max_bookings=max_bookings, current_bookings=current_bookings, is_active=is_active,
    )
    return slot


def active_sub_slot(slot):
    return SubSlot.objects.get(slot=slot, is_active=True)


class SlotReservationTests(TestCase):
    def setUp(self):
        self.manager = SlotReservationManager()

    def test_reserve_increments_active_sub_slot_only(self):
        slot = create_slot(max_bookings=2)
        sub = self.manager.reserve(slot.id)
        self.assertEqual(sub.current_bookings, 1)
        self.assertEqual(active_sub_slot(slot).current_bookings, 1)
        inactive = SubSlot.objects.get(slot=slot, is_active=False)
        self.assertEqual(inactive.current_bookings, 0)

    def test_missing_slot(self):
        with self.assertRaises(NotFound):
            self.manager.reserve(999999)

    def test_no_active_sub_slot(self):
        slot = create_slot(is_active=False)
        with self.assertRaises(ResourceExhausted):
            self.manager.reserve(slot.id)

    def test_full_sub_slot(self):
        slot = create_slot(max_bookings=2, current_bookings=2)
        with self.assertRaises(ResourceExhausted):
            self.manager.reserve(slot.id)
        self.assertEqual(active_sub_slot(slot).current_bookings, 2)

    def test_capacity_never_exceeded(self):
        """N reservations against capacity k: exactly min(N, k) succeed."""
        for capacity, attempts in [(1, 4), (3, 3), (4, 2)]:
            slot = create_slot(max_bookings=capacity)
            ok = failed = 0
            for _ in range(attempts):
                try:
                    self.manager.reserve(slot.id)
                    ok += 1
                except ResourceExhausted:
                    failed += 1
            self.assertEqual(ok, min(attempts, capacity))
            self.assertEqual(failed, attempts - min(attempts, capacity))
            self.assertEqual(active_sub_slot(slot).current_bookings, min(attempts, capacity))

    def test_competing_writer_between_read_and_write(self):
        """Another writer books between our read and our write; our increment still lands on top of theirs."""
        slot = create_slot(max_bookings=3)
        real_read = self.manager._active_sub_slot
        reads = []

        def racing_read(slot_id):
            sub = real_read(slot_id)
            if not reads:
                SubSlot.objects.filter(pk=sub.pk).update(current_bookings=1)
            reads.append(sub.current_bookings)
            return sub

        with mock.patch.object(self.manager, "_active_sub_slot", side_effect=racing_read):
            result = self.manager.reserve(slot.id)

        self.assertEqual(reads, [0])
        self.assertEqual(result.current_bookings, 2)
        self.assertEqual(active_sub_slot(slot).current_bookings, 2)

    def test_heavy_contention_fills_every_seat(self):
        """A competitor books after every one of our reads: all ten seats are sold, none twice, none left over."""
        slot = create_slot(max_bookings=10)
        manager = SlotReservationManager(max_retries=1)
        real_read = manager._active_sub_slot

        def read_then_competitor_books(slot_id):
            sub = real_read(slot_id)
            if sub is not None and not sub.is_full:
                SubSlot.objects.filter(pk=sub.pk).update(current_bookings=sub.current_bookings + 1)
            return sub

        ours = 0
        with mock.patch.object(manager, "_active_sub_slot", side_effect=read_then_competitor_books):
            for _ in range(5):
                manager.reserve(slot.id)
                ours += 1
            with self.assertRaises(ResourceExhausted):
                manager.reserve(slot.id)

        self.assertEqual(ours, 5)
        self.assertEqual(active_sub_slot(slot).current_bookings, 10)

    def test_filled_between_read_and_write(self):
        slot = create_slot(max_bookings=1)
        real_read = self.manager._active_sub_slot

        def read_then_competitor_fills(slot_id):
            sub = real_read(slot_id)
            if sub.current_bookings == 0:
                SubSlot.objects.filter(pk=sub.pk).update(current_bookings=1)
            return sub

        with mock.patch.object(self.manager, "_active_sub_slot", side_effect=read_then_competitor_fills):
            with self.assertRaises(ResourceExhausted):
                self.manager.reserve(slot.id)
        self.assertEqual(active_sub_slot(slot).current_bookings, 1)

    def test_gives_up_when_sub_slot_keeps_switching_off(self):
        slot = create_slot(max_bookings=3)
        # looks bookable when read, but is inactive by the time we write
        switched_off = SubSlot.objects.get(slot=slot, is_active=False)
        manager = SlotReservationManager(max_retries=2)
        with mock.patch.object(manager, "_active_sub_slot", return_value=switched_off) as read:
            with self.assertRaises(Internal):
                manager.reserve(slot.id)
        self.assertEqual(read.call_count, 2)
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)
        switched_off.refresh_from_db()
        self.assertEqual(switched_off.current_bookings, 0)


@unittest.skipUnless(connection.vendor == "postgresql", "needs real row locking")
class ConcurrentReservationTests(TransactionTestCase):
    def test_parallel_reservations_respect_capacity(self):
        slot = create_slot(max_bookings=20)
        results = []
        lock = threading.Lock()

        def worker():
            try:
                SlotReservationManager().reserve(slot.id)
                outcome = "ok"
            except ResourceExhausted:
                outcome = "full"
            except Internal:
                outcome = "gave-up"
            finally:
                connection.close()
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(25)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(results.count("ok"), 20)
        self.assertEqual(results.count("full"), 5)
        self.assertEqual(results.count("gave-up"), 0)
        self.assertEqual(active_sub_slot(slot).current_bookings, 20)


class ServiceableAreaTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(username="admin", password="pw", is_staff=True)
        self.user = User.objects.create_user(username="jane", password="pw")

    def test_contains_uses_great_circle_distance(self):
        area = ServiceableArea.objects.create(
            provider_id="prov-1", name="Center",
            center_latitude=12.9716, center_longitude=77.5946, radius_km=5,
        )
        self.assertTrue(area.contains(12.9800, 77.6000))   # ~1 km away
        self.assertFalse(area.contains(13.1986, 77.7066))  # airport, ~28 km

    def test_only_staff_can_create(self):
        payload = {
            "provider_id": "prov-1", "name": "North",
            "center_latitude": 1.0, "center_longitude": 2.0, "radius_km": 3,
        }
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.post("/api/areas/", payload, format="json").status_code, 403)

        self.client.force_authenticate(self.staff)
        self.assertEqual(self.client.post("/api/areas/", payload, format="json").status_code, 201)

        dup = self.client.post("/api/areas/", payload, format="json")
        self.assertEqual(dup.status_code, 409)
        self.assertEqual(dup.data["code"], "already-exists")

    def test_delete_is_soft(self):
        area = ServiceableArea.objects.create(
            provider_id="prov-1", name="Old", center_latitude=0, center_longitude=0, radius_km=1,
        )
        self.client.force_authenticate(self.staff)
        resp = self.client.delete(f"/api/areas/{area.id}/")
        self.assertEqual(resp.status_code, 204)
        area.refresh_from_db()
        self.assertTrue(area.is_deleted)
        self.assertEqual(self.client.get(f"/api/areas/{area.id}/").status_code, 404)

    def test_contains_endpoint(self):
        area = ServiceableArea.objects.create(
            provider_id="prov-1", name="Center",
            center_latitude=12.9716, center_longitude=77.5946, radius_km=5,
        )
        self.client.force_authenticate(self.user)
        resp = self.client.get(f"/api/areas/{area.id}/contains/", {"lat": 12.98, "lon": 77.60})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["contains"])

        bad = self.client.get(f"/api/areas/{area.id}/contains/", {"lat": "x"})
        self.assertEqual(bad.status_code, 400)


class ServiceAreaCoverageTests(TestCase):
    def setUp(self):
        self.coverage = ServiceAreaCoverage()
        self.center = ServiceableArea.objects.create(
            provider_id="prov-1", name="Center",
            center_latitude=12.9716, center_longitude=77.5946, radius_km=5,
        )
        ServiceableArea.objects.create(
            provider_id="prov-1", name="Airport (paused)",
            center_latitude=13.1986, center_longitude=77.7066, radius_km=5, is_active=False,
        )

    def test_covering_area(self):
        self.assertEqual(self.coverage.covering_area("prov-1", 12.98, 77.60), self.center)
        # inside an inactive area only
        self.assertIsNone(self.coverage.covering_area("prov-1", 13.1986, 77.7066))
        # another provider's areas never count
        self.assertIsNone(self.coverage.covering_area("prov-2", 12.98, 77.60))

    def test_ensure_covered(self):
        area = self.coverage.ensure_covered("prov-1", {"latitude": "12.98", "longitude": 77.60}, "Pickup location")
        self.assertEqual(area, self.center)
        with self.assertRaises(FailedPrecondition) as ctx:
            self.coverage.ensure_covered("prov-1", {"latitude": 13.1986, "longitude": 77.7066}, "Pickup location")
        self.assertIn("Pickup location", str(ctx.exception.detail))

    def test_bad_coordinates(self):
        for details in ({}, {"latitude": 12.98}, {"latitude": "north", "longitude": 1}, {"latitude": 91, "longitude": 0}):
            with self.subTest(details=details):
                with self.assertRaises(InvalidArgument):
                    self.coverage.ensure_covered("prov-1", details, "Delivery location")

    def test_coverage_endpoint(self):
        client = APIClient()
        client.force_authenticate(User.objects.create_user(username="jane", password="pw"))

        resp = client.get("/api/areas/coverage/", {"provider": "prov-1", "latitude": 12.98, "longitude": 77.60})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data, {"success": True, "inServiceArea": True, "areaId": self.center.id})

        resp = client.get("/api/areas/coverage/", {"provider": "prov-1", "latitude": 0, "longitude": 0})
        self.assertEqual(resp.data, {"success": True, "inServiceArea": False, "areaId": None})

        self.assertEqual(client.get("/api/areas/coverage/", {"latitude": 0, "longitude": 0}).status_code, 400)
        self.assertEqual(client.get("/api/areas/coverage/", {"provider": "prov-1"}).status_code, 400)


class SlotListTests(TestCase):
    def test_lists_slots_with_sub_slots(self):
        slot = create_slot(max_bookings=2)
        client = APIClient()
        client.force_authenticate(User.objects.create_user(username="jane", password="pw"))
        resp = client.get("/api/slots/", {"area": slot.area_id})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 1)
        self.assertEqual(len(resp.data[0]["sub_slots"]), 2)

    def test_requires_login(self):
        resp = APIClient().get("/api/slots/")
        self.assertIn(resp.status_code, (401, 403))
