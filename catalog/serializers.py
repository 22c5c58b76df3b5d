from decimal import Decimal, InvalidOperation

from rest_framework import serializers

from core.errors import AlreadyExists
from .models import Service


class ServiceSerializer(serializers.ModelSerializer):
    variations = serializers.ListField(child=serializers.DictField(), required=False, max_length=20)

    class Meta:
        model = Service
        fields = [
            "id",
            "provider_id",
            "name",
            "description",
            "pricing_model",
            "base_price",
            "variations",
            "image_key",
            "processing_time_hours",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_base_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Base price must be greater than 0.")
        return value

    def validate_variations(self, value):
        """Each variation is {"name": str, "price": decimal >= 0}; prices are stored as strings."""
        cleaned = []
        for variation in value:
            name = str(variation.get("name") or "").strip()
            try:
                price = Decimal(str(variation.get("price")))
            except InvalidOperation:
                raise serializers.ValidationError("Variation price must be a number.")
            if not name or not price.is_finite() or price < 0:
                raise serializers.ValidationError("Each variation needs a name and a price of 0 or more.")
            cleaned.append({"name": name, "price": str(price.quantize(Decimal("0.01")))})
        return cleaned

    def validate(self, attrs):
        provider_id = attrs.get("provider_id", getattr(self.instance, "provider_id", None))
        name = attrs.get("name", getattr(self.instance, "name", None))
        qs = Service.objects.filter(provider_id=provider_id, name=name, is_deleted=False)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise AlreadyExists("Service name already exists.")
        return attrs
