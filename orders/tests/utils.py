from decimal import Decimal

from django.utils import timezone

from catalog.models import PricingModel, Service
from orders.models import Order
from orders.state import OrderStatus

# inside the "Downtown" area that slots.tests.create_slot() sets up
LAKE_ROAD = {"address": "12 Lake Rd", "latitude": 12.97, "longitude": 77.59}


def catalog_for(provider_id="acme-laundry"):
    """The provider's two test services, created on first use."""
    wash, _ = Service.objects.get_or_create(
        provider_id=provider_id,
        name="Wash & fold",
        defaults={"pricing_model": PricingModel.PER_KG, "base_price": Decimal("60.00"), "processing_time_hours": 24},
    )
    shirts, _ = Service.objects.get_or_create(
        provider_id=provider_id,
        name="Dry clean shirt",
        defaults={"pricing_model": PricingModel.PER_ITEM, "base_price": Decimal("20.00"), "processing_time_hours": 48},
    )
    return wash, shirts


def order_request(slot, requester_id="jane", provider_id="acme-laundry", **overrides):
    """A valid create-order request (as the serializer would hand it over)."""
    wash, shirts = catalog_for(provider_id)
    data = {
        "requester_id": requester_id,
        "provider_id": provider_id,
        "items": [
            {"service": wash.pk, "quantity": 2, "unit_price": Decimal("60.00")},
            {"service": shirts.pk, "quantity": 4, "unit_price": Decimal("20.00")},
        ],
        "pickup_details": dict(LAKE_ROAD),
        "delivery_details": dict(LAKE_ROAD),
        "pricing": {"subtotal": Decimal("200.00"), "discount": Decimal("0"), "total": Decimal("200.00")},
        "payment": {"status": "unpaid", "transaction_id": None},
        "total_amount": Decimal("200.00"),
        "slot_id": slot.id,
    }
    data.update(overrides)
    return data


def make_order(status=OrderStatus.PENDING, requester_id="jane", provider_id="acme-laundry", **fields):
    """Insert an order directly, bypassing the engine (and the catalog)."""
    now = timezone.now()
    values = {
        "requester_id": requester_id,
        "provider_id": provider_id,
        "items": [{"service": 1, "quantity": 1, "unit_price": "100.00"}],
        "pickup_details": dict(LAKE_ROAD),
        "delivery_details": dict(LAKE_ROAD),
        "pricing": {"subtotal": "100.00", "discount": "0", "total": "100.00"},
        "payment": {"status": "unpaid"},
        "total_amount": Decimal("100.00"),
        "status": status,
        "created_at": now,
        "updated_at": now,
    }
    values.update(fields)
    return Order.objects.create(**values)
