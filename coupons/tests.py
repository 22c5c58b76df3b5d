from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.errors import InvalidArgument
from .models import Coupon
from .services.coupon_validator import CouponValidator, find_coupon, validate_coupon


def create_coupon(code="SAVE50", max_discount="50.00", min_value="100.00", **overrides):
    now = timezone.now()
    fields = {
        "name": "Save up to 50",
        "code": code,
        "max_discount": Decimal(max_discount),
        "min_value": Decimal(min_value),
        "valid_from": now - timedelta(days=1),
        "valid_till": now + timedelta(days=30),
    }
    fields.update(overrides)
    return Coupon.objects.create(**fields)


class CouponArithmeticTests(TestCase):
    def setUp(self):
        self.coupon = create_coupon()
        self.now = timezone.now()

    def test_discount_capped_by_max_discount(self):
        result = validate_coupon(self.coupon, 500, self.now)
        self.assertEqual(result.discount, Decimal("50.00"))
        self.assertEqual(result.applied_code, "SAVE50")

    def test_discount_is_ten_percent_below_cap(self):
        result = validate_coupon(self.coupon, 300, self.now)
        self.assertEqual(result.discount, Decimal("30.00"))

    def test_discount_rounds_to_cents(self):
        result = validate_coupon(self.coupon, Decimal("123.45"), self.now)
        self.assertEqual(result.discount, Decimal("12.35"))

    def test_minimum_value_is_inclusive(self):
        self.assertEqual(validate_coupon(self.coupon, 100, self.now).discount, Decimal("10.00"))
        with self.assertRaises(InvalidArgument):
            validate_coupon(self.coupon, Decimal("99.99"), self.now)


class CouponWindowTests(TestCase):
    def test_expired(self):
        coupon = create_coupon(valid_till=timezone.now() - timedelta(minutes=1))
        with self.assertRaises(InvalidArgument) as ctx:
            validate_coupon(coupon, 500, timezone.now())
        self.assertIn("not valid at this time", str(ctx.exception.detail))

    def test_not_started(self):
        coupon = create_coupon(valid_from=timezone.now() + timedelta(days=1))
        with self.assertRaises(InvalidArgument):
            validate_coupon(coupon, 500, timezone.now())


class FindCouponTests(TestCase):
    def test_unknown_code(self):
        with self.assertRaises(InvalidArgument):
            find_coupon("NOPE")

    def test_deleted_and_inactive_are_ignored(self):
        create_coupon(code="GONE", is_deleted=True)
        create_coupon(code="OFF", is_active=False)
        for code in ("GONE", "OFF"):
            with self.assertRaises(InvalidArgument):
                CouponValidator().validate(code, 500)

    def test_validator_combines_lookup_and_rules(self):
        create_coupon()
        self.assertEqual(CouponValidator().validate("SAVE50", 300).discount, Decimal("30.00"))


class CouponApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(username="admin", password="pw", is_staff=True)
        self.user = User.objects.create_user(username="jane", password="pw")
        now = timezone.now()
        self.payload = {
            "name": "Winter",
            "code": "WINTER10",
            "max_discount": "25.00",
            "min_value": "50.00",
            "valid_from": (now - timedelta(days=1)).isoformat(),
            "valid_till": (now + timedelta(days=10)).isoformat(),
        }

    def test_staff_only(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get("/api/coupons/").status_code, 403)
        self.assertEqual(self.client.post("/api/coupons/", self.payload, format="json").status_code, 403)

    def test_create_and_reject_duplicate_code(self):
        self.client.force_authenticate(self.staff)
        first = self.client.post("/api/coupons/", self.payload, format="json")
        self.assertEqual(first.status_code, 201)

        second = self.client.post("/api/coupons/", self.payload, format="json")
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.data["code"], "already-exists")

    def test_deleted_code_can_be_reused(self):
        self.client.force_authenticate(self.staff)
        coupon_id = self.client.post("/api/coupons/", self.payload, format="json").data["id"]
        self.assertEqual(self.client.delete(f"/api/coupons/{coupon_id}/").status_code, 204)
        self.assertTrue(Coupon.objects.get(pk=coupon_id).is_deleted)
        self.assertEqual(self.client.get("/api/coupons/").data, [])
        self.assertEqual(self.client.post("/api/coupons/", self.payload, format="json").status_code, 201)

    def test_patch_ignores_fields_outside_allow_list(self):
        coupon = create_coupon()
        self.client.force_authenticate(self.staff)
        resp = self.client.patch(
            f"/api/coupons/{coupon.id}/",
            {"max_discount": "40.00", "is_deleted": True, "created_at": "2000-01-01T00:00:00Z"},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        coupon.refresh_from_db()
        self.assertEqual(coupon.max_discount, Decimal("40.00"))
        self.assertFalse(coupon.is_deleted)

    def test_put_not_allowed(self):
        coupon = create_coupon()
        self.client.force_authenticate(self.staff)
        resp = self.client.put(f"/api/coupons/{coupon.id}/", self.payload, format="json")
        self.assertEqual(resp.status_code, 405)

    def test_window_must_be_ordered(self):
        self.client.force_authenticate(self.staff)
        payload = dict(self.payload, valid_till=self.payload["valid_from"])
        resp = self.client.post("/api/coupons/", payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "invalid-argument")

    def test_check_endpoint_for_any_user(self):
        create_coupon()
        self.client.force_authenticate(self.user)
        resp = self.client.post("/api/coupons/check/", {"code": "SAVE50", "order_total": "300"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["discount"], "30.00")

        bad = self.client.post("/api/coupons/check/", {"code": "SAVE50", "order_total": "20"}, format="json")
        self.assertEqual(bad.status_code, 400)
        self.assertEqual(bad.data["code"], "invalid-argument")
