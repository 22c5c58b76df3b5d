from rest_framework import serializers

from core.errors import AlreadyExists
from .models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    """
    Only the fields listed here can be written. Anything else in a PATCH body
    (is_deleted, timestamps, unknown keys) is ignored.
    """
    class Meta:
        model = Coupon
        fields = [
            "id",
            "name",
            "code",
            "max_discount",
            "min_value",
            "valid_from",
            "valid_till",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_code(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Coupon code cannot be blank.")
        return value

    def validate(self, attrs):
        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_till = attrs.get("valid_till", getattr(self.instance, "valid_till", None))
        if valid_from and valid_till and valid_from >= valid_till:
            raise serializers.ValidationError("valid_till must be after valid_from.")

        code = attrs.get("code")
        if code is not None:
            qs = Coupon.objects.filter(code=code, is_deleted=False)
            if self.instance is not None:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise AlreadyExists("Coupon code already exists.")
        return attrs


class CouponCheckSerializer(serializers.Serializer):
    code = serializers.CharField()
    order_total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
