from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from slots.models import ServiceableArea
from .models import UserAddress


def address_payload(**overrides):
    data = {
        "address_type": "home",
        "contact": {"name": "Jane", "phone": "+91 98450 00000"},
        "address_components": {"line1": "12 Lake Rd", "city": "Bengaluru"},
        "latitude": 12.97,
        "longitude": 77.59,
    }
    data.update(overrides)
    return data


class UserAddressApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.jane = User.objects.create_user(username="jane", password="pw")
        self.bob = User.objects.create_user(username="bob", password="pw")
        self.client.force_authenticate(self.jane)

    def test_create_is_owned_by_caller(self):
        response = self.client.post("/api/addresses/", address_payload(user_id="bob"), format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(UserAddress.objects.get().user_id, "jane")

    def test_missing_or_bad_fields(self):
        response = self.client.post("/api/addresses/", address_payload(contact={}, latitude=123), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("contact", response.data["errors"])
        self.assertIn("latitude", response.data["errors"])

    def test_single_default(self):
        first = self.client.post("/api/addresses/", address_payload(is_default=True), format="json").data["id"]
        second = self.client.post(
            "/api/addresses/", address_payload(address_type="work", is_default=True), format="json"
        ).data["id"]
        self.assertFalse(UserAddress.objects.get(pk=first).is_default)
        self.assertTrue(UserAddress.objects.get(pk=second).is_default)

        self.client.patch(f"/api/addresses/{first}/", {"is_default": True}, format="json")
        self.assertEqual(
            list(UserAddress.objects.filter(is_default=True).values_list("pk", flat=True)), [first]
        )

    def test_defaults_are_per_user(self):
        UserAddress.objects.create(
            user_id="bob", contact={"name": "Bob"}, address_components={"line1": "3 Hill St"},
            latitude=12.9, longitude=77.6, is_default=True,
        )
        self.client.post("/api/addresses/", address_payload(is_default=True), format="json")
        self.assertTrue(UserAddress.objects.get(user_id="bob").is_default)

    def test_only_own_addresses(self):
        mine = self.client.post("/api/addresses/", address_payload(), format="json").data["id"]
        self.client.force_authenticate(self.bob)
        self.assertEqual(self.client.get("/api/addresses/").data, [])
        self.assertEqual(self.client.patch(f"/api/addresses/{mine}/", {"latitude": 0}, format="json").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/addresses/{mine}/").status_code, 404)

    def test_delete_is_soft(self):
        mine = self.client.post("/api/addresses/", address_payload(is_default=True), format="json").data["id"]
        self.assertEqual(self.client.delete(f"/api/addresses/{mine}/").status_code, 204)
        address = UserAddress.objects.get(pk=mine)
        self.assertTrue(address.is_deleted)
        self.assertFalse(address.is_default)
        self.assertEqual(self.client.get("/api/addresses/").data, [])

    def test_coverage(self):
        area = ServiceableArea.objects.create(
            provider_id="acme-laundry", name="Downtown",
            center_latitude=12.9716, center_longitude=77.5946, radius_km=5,
        )
        home = self.client.post("/api/addresses/", address_payload(), format="json").data["id"]
        far = self.client.post(
            "/api/addresses/", address_payload(latitude=13.1986, longitude=77.7066), format="json"
        ).data["id"]

        response = self.client.get(f"/api/addresses/{home}/coverage/", {"provider": "acme-laundry"})
        self.assertEqual(response.data, {"success": True, "inServiceArea": True, "areaId": area.id})
        response = self.client.get(f"/api/addresses/{far}/coverage/", {"provider": "acme-laundry"})
        self.assertFalse(response.data["inServiceArea"])
        self.assertEqual(self.client.get(f"/api/addresses/{home}/coverage/").status_code, 400)
