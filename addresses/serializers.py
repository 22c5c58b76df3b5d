from rest_framework import serializers

from .models import UserAddress


class UserAddressSerializer(serializers.ModelSerializer):
    contact = serializers.DictField(allow_empty=False)
    address_components = serializers.DictField(allow_empty=False)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)

    class Meta:
        model = UserAddress
        fields = [
            "id",
            "user_id",
            "address_type",
            "contact",
            "address_components",
            "latitude",
            "longitude",
            "is_default",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["user_id", "created_at", "updated_at"]
