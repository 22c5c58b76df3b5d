from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from orders.models import Order
from orders.state import OrderStatus
from slots.tests import active_sub_slot, create_slot

from .utils import LAKE_ROAD, catalog_for, make_order


def order_payload(slot, requester_id="jane", **overrides):
    wash, _ = catalog_for("acme-laundry")
    data = {
        "requester_id": requester_id,
        "provider_id": "acme-laundry",
        "items": [{"service": wash.pk, "quantity": 2, "unit_price": "100.00"}],
        "pickup_details": LAKE_ROAD,
        "delivery_details": LAKE_ROAD,
        "pricing": {"subtotal": "200.00", "discount": "0.00", "total": "200.00"},
        "payment": {"status": "unpaid"},
        "total_amount": "200.00",
        "slot_id": slot.id,
    }
    data.update(overrides)
    return data


class OrderApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.jane = User.objects.create_user(username="jane", email="jane@example.com", password="pass123")
        self.provider = User.objects.create_user(username="acme-laundry", password="pass123")
        self.admin = User.objects.create_user(username="admin", password="pass123", is_staff=True)


class CreateOrderApiTests(OrderApiTestCase):
    def test_requires_login(self):
        slot = create_slot()
        response = self.client.post("/api/orders/", order_payload(slot), format="json")
        self.assertIn(response.status_code, (401, 403))
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["code"], "unauthenticated")

    def test_create_returns_envelope(self):
        slot = create_slot()
        self.client.force_authenticate(self.jane)

        response = self.client.post("/api/orders/", order_payload(slot), format="json")

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["success"])
        order = Order.objects.get(pk=response.data["orderId"])
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(response.data["order"]["status"], "pending")
        self.assertEqual(active_sub_slot(slot).current_bookings, 1)

    def test_cannot_order_for_someone_else(self):
        slot = create_slot()
        self.client.force_authenticate(self.jane)
        response = self.client.post("/api/orders/", order_payload(slot, requester_id="bob"), format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["code"], "permission-denied")
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)

    def test_invalid_body(self):
        slot = create_slot()
        self.client.force_authenticate(self.jane)
        payload = order_payload(slot)
        del payload["items"]
        response = self.client.post("/api/orders/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid-argument")
        self.assertIn("items", response.data["errors"])

    def test_full_slot(self):
        slot = create_slot(max_bookings=1, current_bookings=1)
        self.client.force_authenticate(self.jane)
        response = self.client.post("/api/orders/", order_payload(slot), format="json")
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.data["code"], "resource-exhausted")
        self.assertEqual(Order.objects.count(), 0)

    def test_delivery_outside_serviceable_area(self):
        slot = create_slot()
        self.client.force_authenticate(self.jane)
        far_away = {"address": "Airport Rd", "latitude": 13.1986, "longitude": 77.7066}
        response = self.client.post("/api/orders/", order_payload(slot, delivery_details=far_away), format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "failed-precondition")
        self.assertIn("Delivery location", response.data["detail"])
        self.assertEqual(active_sub_slot(slot).current_bookings, 0)

    def test_item_must_come_from_the_catalog(self):
        slot = create_slot()
        self.client.force_authenticate(self.jane)
        items = [{"service": 987654, "quantity": 1, "unit_price": "200.00"}]
        response = self.client.post("/api/orders/", order_payload(slot, items=items), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid-argument")
        self.assertEqual(Order.objects.count(), 0)


class ListOrdersApiTests(OrderApiTestCase):
    def setUp(self):
        super().setUp()
        make_order(requester_id="jane")
        make_order(requester_id="bob")

    def test_own_orders(self):
        self.client.force_authenticate(self.jane)
        response = self.client.get("/api/orders/", {"requester": "jane"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])
        self.assertEqual(len(response.data["orders"]), 1)

    def test_provider_sees_received_orders(self):
        self.client.force_authenticate(self.provider)
        response = self.client.get("/api/orders/", {"provider": "acme-laundry"})
        self.assertEqual(len(response.data["orders"]), 2)

    def test_someone_elses_orders(self):
        self.client.force_authenticate(self.jane)
        response = self.client.get("/api/orders/", {"requester": "bob"})
        self.assertEqual(response.status_code, 403)

    def test_filter_required(self):
        self.client.force_authenticate(self.jane)
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid-argument")

    def test_retrieve(self):
        order = Order.objects.get(requester_id="jane")
        self.client.force_authenticate(self.jane)
        self.assertEqual(self.client.get(f"/api/orders/{order.pk}/").data["order"]["id"], order.pk)

        missing = self.client.get("/api/orders/999999/")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.data["code"], "not-found")


class StatusApiTests(OrderApiTestCase):
    def test_provider_moves_order_forward(self):
        order = make_order()
        self.client.force_authenticate(self.provider)
        response = self.client.post(
            f"/api/orders/{order.pk}/status/",
            {"provider_id": "acme-laundry", "status": "processing"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["order"]["status"], "processing")
        self.assertEqual(response.data["order"]["status_label"], "Processing")

    def test_illegal_jump(self):
        order = make_order()
        self.client.force_authenticate(self.provider)
        response = self.client.post(
            f"/api/orders/{order.pk}/status/",
            {"provider_id": "acme-laundry", "status": "completed"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "failed-precondition")

    def test_requester_cannot_act_as_provider(self):
        order = make_order()
        self.client.force_authenticate(self.jane)
        response = self.client.post(
            f"/api/orders/{order.pk}/status/",
            {"provider_id": "acme-laundry", "status": "processing"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)


class CancelApiTests(OrderApiTestCase):
    def test_requester_cancels(self):
        order = make_order()
        self.client.force_authenticate(self.jane)
        response = self.client.post(f"/api/orders/{order.pk}/cancel/", {"reason": "Too late"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["order"]["status"], "cancelled")
        self.assertEqual(response.data["order"]["cancelled_by"], "user")

    def test_stranger_cannot_cancel(self):
        order = make_order()
        self.client.force_authenticate(self.provider)
        response = self.client.post(f"/api/orders/{order.pk}/cancel/", {}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_staff_cancels_out_for_delivery(self):
        order = make_order(status=OrderStatus.OUT_FOR_DELIVERY)

        self.client.force_authenticate(self.jane)
        refused = self.client.post(f"/api/orders/{order.pk}/cancel/", {}, format="json")
        self.assertEqual(refused.status_code, 409)

        self.client.force_authenticate(self.admin)
        response = self.client.post(f"/api/orders/{order.pk}/cancel/", {"reason": "Lost parcel"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["order"]["cancelled_by"], "admin")
