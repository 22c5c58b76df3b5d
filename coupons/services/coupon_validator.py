"""
coupon_validator.py
-------------------
Decides whether a coupon applies to an order and how much it takes off.

Rules:
- coupon must exist, be active and not deleted
- now must fall inside [valid_from, valid_till]
- order total must be at least min_value
- discount = min(max_discount, 10% of order total), rounded to cents

validate_coupon() is pure: it only looks at the coupon it is handed.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from core.errors import InvalidArgument

from ..models import Coupon

COUPON_DISCOUNT_RATE = Decimal("0.10")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CouponResult:
    discount: Decimal
    applied_code: str


def find_coupon(code: str) -> Coupon:
    """Look up the live coupon for `code` or raise InvalidArgument."""
    code = (code or "").strip()
    coupon = (
        Coupon.objects.filter(code=code, is_deleted=False, is_active=True)
        .order_by("-created_at", "-id")
        .first()
    )
    if not code or coupon is None:
        raise InvalidArgument("Invalid or inactive coupon code.")
    return coupon


def validate_coupon(coupon: Coupon, order_total, now) -> CouponResult:
    total = Decimal(str(order_total))

    if now < coupon.valid_from or now > coupon.valid_till:
        raise InvalidArgument("Coupon is not valid at this time.")

    if total < coupon.min_value:
        raise InvalidArgument("Order does not meet minimum value for coupon.")

    discount = min(Decimal(coupon.max_discount), total * COUPON_DISCOUNT_RATE)
    return CouponResult(
        discount=discount.quantize(CENTS, rounding=ROUND_HALF_UP),
        applied_code=coupon.code,
    )


class CouponValidator:
    def validate(self, code: str, order_total, now=None) -> CouponResult:
        now = now or timezone.now()
        return validate_coupon(find_coupon(code), order_total, now)
