from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from core.errors import InvalidArgument
from .models import PricingModel, Service
from .services.service_catalog import ServiceCatalog


def create_service(provider_id="acme-laundry", name="Wash & fold", base_price="60.00", **overrides):
    fields = {
        "provider_id": provider_id,
        "name": name,
        "pricing_model": PricingModel.PER_KG,
        "base_price": Decimal(base_price),
    }
    fields.update(overrides)
    return Service.objects.create(**fields)


class ServiceCatalogTests(TestCase):
    def setUp(self):
        self.catalog = ServiceCatalog()
        self.wash = create_service(processing_time_hours=24)
        self.shirts = create_service(name="Dry clean shirt", base_price="20.00", processing_time_hours=48)

    def test_resolves_items_in_order(self):
        items = [{"service": self.shirts.pk}, {"service": str(self.wash.pk)}, {"service": self.shirts.pk}]
        services = self.catalog.resolve_items("acme-laundry", items)
        self.assertEqual([s.pk for s in services], [self.shirts.pk, self.wash.pk, self.shirts.pk])

    def test_rejects_services_the_provider_does_not_offer(self):
        foreign = create_service(provider_id="other-laundry")
        retired = create_service(name="Retired", is_active=False)
        gone = create_service(name="Gone", is_deleted=True)
        for service_id in (foreign.pk, retired.pk, gone.pk, 987654):
            with self.subTest(service_id=service_id):
                with self.assertRaises(InvalidArgument) as ctx:
                    self.catalog.resolve_items("acme-laundry", [{"service": self.wash.pk}, {"service": service_id}])
                self.assertIn(str(service_id), str(ctx.exception.detail))

    def test_rejects_non_numeric_reference(self):
        with self.assertRaises(InvalidArgument):
            self.catalog.resolve_items("acme-laundry", [{"service": "wash-and-fold"}])
        with self.assertRaises(InvalidArgument):
            self.catalog.resolve_items("acme-laundry", [{"quantity": 1}])

    def test_processing_time_is_the_longest(self):
        self.assertEqual(ServiceCatalog.processing_time_for([self.wash, self.shirts]), 48)
        self.assertIsNone(ServiceCatalog.processing_time_for([create_service(name="Quick")]))


class ServiceApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.provider = User.objects.create_user(username="acme-laundry", password="pw")
        self.rival = User.objects.create_user(username="other-laundry", password="pw")
        self.admin = User.objects.create_user(username="admin", password="pw", is_staff=True)

    def payload(self, **overrides):
        data = {
            "provider_id": "acme-laundry",
            "name": "Wash & fold",
            "pricing_model": "per-kg",
            "base_price": "60.00",
            "variations": [{"name": "Express", "price": "80"}],
            "processing_time_hours": 24,
        }
        data.update(overrides)
        return data

    def test_provider_creates_own_service(self):
        self.client.force_authenticate(self.provider)
        response = self.client.post("/api/services/", self.payload(), format="json")
        self.assertEqual(response.status_code, 201)
        service = Service.objects.get()
        self.assertEqual(service.variations, [{"name": "Express", "price": "80.00"}])
        self.assertTrue(service.is_active)

    def test_duplicate_name(self):
        create_service()
        self.client.force_authenticate(self.provider)
        response = self.client.post("/api/services/", self.payload(), format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "already-exists")

        # the same name is fine for another provider
        self.client.force_authenticate(self.rival)
        response = self.client.post("/api/services/", self.payload(provider_id="other-laundry"), format="json")
        self.assertEqual(response.status_code, 201)

    def test_cannot_create_for_someone_else(self):
        self.client.force_authenticate(self.rival)
        response = self.client.post("/api/services/", self.payload(), format="json")
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Service.objects.exists())

        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.post("/api/services/", self.payload(), format="json").status_code, 201)

    def test_price_must_be_positive(self):
        self.client.force_authenticate(self.provider)
        response = self.client.post("/api/services/", self.payload(base_price="0"), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("base_price", response.data["errors"])

        response = self.client.post(
            "/api/services/", self.payload(variations=[{"name": "", "price": "-1"}]), format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("variations", response.data["errors"])

    def test_list_needs_provider_and_hides_deleted(self):
        create_service()
        create_service(name="Old", is_deleted=True)
        create_service(provider_id="other-laundry")
        self.client.force_authenticate(self.rival)

        response = self.client.get("/api/services/", {"provider": "acme-laundry"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([s["name"] for s in response.data], ["Wash & fold"])
        self.assertEqual(self.client.get("/api/services/").status_code, 400)

    def test_only_owner_updates(self):
        service = create_service()
        self.client.force_authenticate(self.rival)
        response = self.client.patch(f"/api/services/{service.pk}/", {"base_price": "1.00"}, format="json")
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.provider)
        response = self.client.patch(f"/api/services/{service.pk}/", {"base_price": "65.00"}, format="json")
        self.assertEqual(response.status_code, 200)
        service.refresh_from_db()
        self.assertEqual(service.base_price, Decimal("65.00"))

        response = self.client.patch(
            f"/api/services/{service.pk}/", {"provider_id": "other-laundry"}, format="json"
        )
        self.assertEqual(response.status_code, 403)

    def test_delete_is_soft(self):
        service = create_service()
        self.client.force_authenticate(self.provider)
        self.assertEqual(self.client.delete(f"/api/services/{service.pk}/").status_code, 204)
        service.refresh_from_db()
        self.assertTrue(service.is_deleted)
        self.assertFalse(service.is_active)
        self.assertEqual(self.client.get(f"/api/services/{service.pk}/").status_code, 404)
