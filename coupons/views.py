# coupons/views.py
#
# Purpose:
# - Admin CRUD for coupons (staff only). DELETE is a soft delete.
# - POST /api/coupons/check/ lets any signed-in user preview a discount
#   before placing an order.
#
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsStaffOnly
from .models import Coupon
from .serializers import CouponCheckSerializer, CouponSerializer
from .services.coupon_validator import CouponValidator


class CouponViewSet(viewsets.ModelViewSet):
    serializer_class = CouponSerializer
    permission_classes = [IsStaffOnly]
    # PATCH only: partial updates go through the serializer's field list
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        return Coupon.objects.filter(is_deleted=False).order_by("-created_at", "-id")

    def get_permissions(self):
        if self.action == "check_code":
            return [IsAuthenticated()]
        return super().get_permissions()

    def perform_destroy(self, instance):
        instance.is_deleted = True
        instance.save(update_fields=["is_deleted", "updated_at"])

    @action(detail=False, methods=["post"], url_path="check")
    def check_code(self, request):
        serializer = CouponCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = CouponValidator().validate(
            serializer.validated_data["code"],
            serializer.validated_data["order_total"],
        )
        return Response({
            "success": True,
            "couponCode": result.applied_code,
            "discount": str(result.discount),
        })
