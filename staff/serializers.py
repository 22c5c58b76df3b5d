from datetime import time

from rest_framework import serializers

from core.errors import AlreadyExists
from .models import WEEKDAYS, StaffMember, WorkingHours


def _parse_hhmm(value) -> time:
    h, m = str(value).split(":")
    return time(int(h), int(m))


class StaffMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffMember
        fields = ["id", "provider_id", "name", "email", "phone", "role", "is_active", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs):
        provider_id = attrs.get("provider_id", getattr(self.instance, "provider_id", None))
        email = attrs.get("email", getattr(self.instance, "email", None))
        qs = StaffMember.objects.filter(provider_id=provider_id, email__iexact=email, is_deleted=False)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise AlreadyExists("Staff email already exists for this provider.")
        return attrs


class WorkingHoursSerializer(serializers.ModelSerializer):
    class Meta:
        model = WorkingHours
        fields = ["id", "provider_id", "schedule", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_schedule(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Schedule must map weekdays to opening hours.")
        cleaned = {}
        for day, hours in value.items():
            if day not in WEEKDAYS:
                raise serializers.ValidationError(f"Unknown weekday '{day}'.")
            try:
                opens = _parse_hhmm(hours["open"])
                closes = _parse_hhmm(hours["close"])
            except (KeyError, TypeError, ValueError):
                raise serializers.ValidationError(f"{day}: open and close must be HH:MM.")
            if opens >= closes:
                raise serializers.ValidationError(f"{day}: closing time must be after opening time.")
            cleaned[day] = {"open": opens.strftime("%H:%M"), "close": closes.strftime("%H:%M")}
        return cleaned

    def validate(self, attrs):
        provider_id = attrs.get("provider_id", getattr(self.instance, "provider_id", None))
        qs = WorkingHours.objects.filter(provider_id=provider_id, is_deleted=False)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise AlreadyExists("Working hours already exist for this provider.")
        return attrs
