from rest_framework import serializers

from core.errors import AlreadyExists
from .models import ServiceableArea, Slot, SubSlot


class ServiceableAreaSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceableArea
        fields = [
            "id",
            "provider_id",
            "name",
            "center_latitude",
            "center_longitude",
            "radius_km",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs):
        provider_id = attrs.get("provider_id", getattr(self.instance, "provider_id", None))
        name = attrs.get("name", getattr(self.instance, "name", None))
        qs = ServiceableArea.objects.filter(provider_id=provider_id, name=name, is_deleted=False)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise AlreadyExists("Area name already exists for this provider.")
        return attrs


class SubSlotSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubSlot
        fields = ["id", "position", "start_time", "end_time", "max_bookings", "current_bookings", "is_active"]
        read_only_fields = fields


class SlotSerializer(serializers.ModelSerializer):
    sub_slots = SubSlotSerializer(many=True, read_only=True)

    class Meta:
        model = Slot
        fields = ["id", "area", "date", "label", "sub_slots", "updated_at"]
        read_only_fields = fields
