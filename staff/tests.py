from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from .models import StaffMember, WorkingHours


class StaffApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.provider = User.objects.create_user(username="acme-laundry", password="pw")
        self.rival = User.objects.create_user(username="other-laundry", password="pw")
        self.admin = User.objects.create_user(username="admin", password="pw", is_staff=True)


class StaffMemberApiTests(StaffApiTestCase):
    def payload(self, **overrides):
        data = {
            "provider_id": "acme-laundry",
            "name": "Ravi",
            "email": "ravi@acme.example.com",
            "phone": "+91 98450 11111",
            "role": "driver",
        }
        data.update(overrides)
        return data

    def test_provider_adds_staff(self):
        self.client.force_authenticate(self.provider)
        response = self.client.post("/api/staff/", self.payload(), format="json")
        self.assertEqual(response.status_code, 201)
        self.assertTrue(StaffMember.objects.get().is_active)

    def test_duplicate_email_per_provider(self):
        self.client.force_authenticate(self.provider)
        self.client.post("/api/staff/", self.payload(), format="json")
        response = self.client.post(
            "/api/staff/", self.payload(name="Ravi K", email="RAVI@acme.example.com"), format="json"
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "already-exists")

        self.client.force_authenticate(self.admin)
        response = self.client.post("/api/staff/", self.payload(provider_id="other-laundry"), format="json")
        self.assertEqual(response.status_code, 201)

    def test_cannot_manage_someone_elses_team(self):
        self.client.force_authenticate(self.rival)
        self.assertEqual(self.client.post("/api/staff/", self.payload(), format="json").status_code, 403)

        member = StaffMember.objects.create(**self.payload())
        self.assertEqual(self.client.get("/api/staff/").data, [])
        self.assertEqual(self.client.get(f"/api/staff/{member.pk}/").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/staff/{member.pk}/").status_code, 404)

    def test_admin_filters_by_provider(self):
        StaffMember.objects.create(**self.payload())
        StaffMember.objects.create(**self.payload(provider_id="other-laundry"))
        self.client.force_authenticate(self.admin)
        self.assertEqual(len(self.client.get("/api/staff/").data), 2)
        response = self.client.get("/api/staff/", {"provider": "other-laundry"})
        self.assertEqual([m["provider_id"] for m in response.data], ["other-laundry"])

    def test_delete_is_soft(self):
        member = StaffMember.objects.create(**self.payload())
        self.client.force_authenticate(self.provider)
        self.assertEqual(self.client.delete(f"/api/staff/{member.pk}/").status_code, 204)
        member.refresh_from_db()
        self.assertTrue(member.is_deleted)
        self.assertFalse(member.is_active)

        # the email is free again
        response = self.client.post("/api/staff/", self.payload(), format="json")
        self.assertEqual(response.status_code, 201)


class WorkingHoursApiTests(StaffApiTestCase):
    def setUp(self):
        super().setUp()
        self.client.force_authenticate(self.provider)

    def test_create_and_normalise(self):
        response = self.client.post(
            "/api/working-hours/",
            {"provider_id": "acme-laundry", "schedule": {"monday": {"open": "9:00", "close": "18:30"}}},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(WorkingHours.objects.get().schedule, {"monday": {"open": "09:00", "close": "18:30"}})

    def test_one_live_row_per_provider(self):
        WorkingHours.objects.create(provider_id="acme-laundry", schedule={})
        response = self.client.post(
            "/api/working-hours/", {"provider_id": "acme-laundry", "schedule": {}}, format="json"
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "already-exists")

    def test_bad_schedules(self):
        for schedule in (
            {"funday": {"open": "09:00", "close": "17:00"}},
            {"monday": {"open": "18:00", "close": "09:00"}},
            {"monday": {"open": "nine", "close": "17:00"}},
            {"monday": {"open": "09:00"}},
            ["monday"],
        ):
            with self.subTest(schedule=schedule):
                response = self.client.post(
                    "/api/working-hours/", {"provider_id": "acme-laundry", "schedule": schedule}, format="json"
                )
                self.assertEqual(response.status_code, 400)
                self.assertIn("schedule", response.data["errors"])

    def test_update_own_hours(self):
        hours = WorkingHours.objects.create(provider_id="acme-laundry", schedule={})
        response = self.client.patch(
            f"/api/working-hours/{hours.pk}/",
            {"schedule": {"saturday": {"open": "10:00", "close": "14:00"}}},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        hours.refresh_from_db()
        self.assertEqual(list(hours.schedule), ["saturday"])

        self.client.force_authenticate(self.rival)
        response = self.client.patch(f"/api/working-hours/{hours.pk}/", {"schedule": {}}, format="json")
        self.assertEqual(response.status_code, 404)
