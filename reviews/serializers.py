from rest_framework import serializers

from core.errors import AlreadyExists, FailedPrecondition, PermissionDenied
from orders.models import Order
from orders.state import OrderStatus
from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    """
    rating, comment and images are the only fields a PATCH can change.
    The order is fixed once the review exists.
    """
    order = serializers.PrimaryKeyRelatedField(queryset=Order.objects.all())
    images = serializers.ListField(child=serializers.URLField(), required=False, max_length=10)

    class Meta:
        model = Review
        fields = ["id", "order", "author_id", "rating", "comment", "images", "created_at", "updated_at"]
        read_only_fields = ["author_id", "created_at", "updated_at"]

    def validate_rating(self, value):
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value

    def validate(self, attrs):
        if self.instance is not None:
            attrs.pop("order", None)
            return attrs

        order = attrs.get("order")
        author_id = self.context["request"].user.get_username()
        if order.requester_id != author_id:
            raise PermissionDenied("Only the requester can review this order.")
        if order.status != OrderStatus.COMPLETED:
            raise FailedPrecondition("Only completed orders can be reviewed.")
        if Review.objects.filter(order=order, author_id=author_id, is_deleted=False).exists():
            raise AlreadyExists("You have already reviewed this order.")
        return attrs
