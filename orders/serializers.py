from decimal import Decimal

from rest_framework import serializers

from .models import Order, PaymentStatus
from .state import OrderStatus


class LineItemSerializer(serializers.Serializer):
    # id of a catalog.Service offered by the order's provider
    service = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"))


class PricingSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0"))
    total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"), required=False)


class PaymentSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PaymentStatus.choices, default=PaymentStatus.UNPAID)
    transaction_id = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)


class CreateOrderSerializer(serializers.Serializer):
    """
    Shape of POST /api/orders/. Only these keys reach the lifecycle engine;
    anything else in the body is dropped.
    """
    requester_id = serializers.CharField(max_length=128)
    provider_id = serializers.CharField(max_length=128)
    items = LineItemSerializer(many=True, allow_empty=False)
    pickup_details = serializers.DictField(allow_empty=False)
    delivery_details = serializers.DictField(allow_empty=False)
    pricing = PricingSerializer()
    payment = PaymentSerializer()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    slot_id = serializers.IntegerField(min_value=1)
    coupon_code = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    processing_time_hours = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class StatusUpdateSerializer(serializers.Serializer):
    provider_id = serializers.CharField(max_length=128)
    # Any string: unknown values are reported by the engine as invalid-argument
    status = serializers.CharField(max_length=20)
    processing_time_hours = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class OrderSerializer(serializers.ModelSerializer):
    status_label = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "requester_id",
            "provider_id",
            "items",
            "pickup_details",
            "delivery_details",
            "pricing",
            "payment",
            "coupon_code",
            "total_amount",
            "slot",
            "status",
            "status_label",
            "processing_time_hours",
            "cancellation_reason",
            "cancelled_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_status_label(self, obj):
        try:
            return OrderStatus(obj.status).label
        except ValueError:
            return obj.status
