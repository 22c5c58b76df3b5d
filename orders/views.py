# orders/views.py
#
# Purpose:
# - HTTP surface of the order lifecycle:
#   * POST /api/orders/                  place an order
#   * GET  /api/orders/?requester=<id>   orders placed by someone
#   * GET  /api/orders/?provider=<id>    orders received by a provider
#   * GET  /api/orders/{id}/             one order
#   * POST /api/orders/{id}/status/      provider moves the order along
#   * POST /api/orders/{id}/cancel/      requester (or admin) cancels
#
# Identity:
# - The signed-in user's username is their requester/provider id.
# - Staff users act as marketplace admins: they may act for anyone and cancel
#   at any non-terminal stage.
#
# Notes for developers:
# - All business rules live in OrderLifecycleEngine. Errors it raises are
#   rendered by core.errors.marketplace_exception_handler.
#
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.errors import PermissionDenied
from .serializers import (
    CancelSerializer,
    CreateOrderSerializer,
    OrderSerializer,
    StatusUpdateSerializer,
)
from .services.order_lifecycle import OrderLifecycleEngine


def _identity(request) -> str:
    return request.user.get_username()


class OrderViewSet(viewsets.GenericViewSet):
    serializer_class = OrderSerializer

    def get_engine(self):
        return OrderLifecycleEngine.default()

    def _ensure_self_or_staff(self, request, *ids):
        if request.user.is_staff:
            return
        me = _identity(request)
        if me not in ids:
            raise PermissionDenied("You can only act on your own orders.")

    def create(self, request, *args, **kwargs):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        self._ensure_self_or_staff(request, data["requester_id"])

        order = self.get_engine().create_order(data, actor=_identity(request))
        return Response(
            {"success": True, "orderId": order.pk, "order": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )

    def list(self, request, *args, **kwargs):
        requester_id = (request.query_params.get("requester") or "").strip()
        provider_id = (request.query_params.get("provider") or "").strip()

        if requester_id or provider_id:
            self._ensure_self_or_staff(request, requester_id or provider_id)

        orders = self.get_engine().list_orders(requester_id=requester_id, provider_id=provider_id)
        return Response({"success": True, "orders": OrderSerializer(orders, many=True).data})

    def retrieve(self, request, pk=None, *args, **kwargs):
        order = self.get_engine().get_order(pk)
        self._ensure_self_or_staff(request, order.requester_id, order.provider_id)
        return Response({"success": True, "order": OrderSerializer(order).data})

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        self._ensure_self_or_staff(request, data["provider_id"])

        order = self.get_engine().update_status(
            pk,
            data["provider_id"],
            data["status"],
            actor=_identity(request),
            processing_time_hours=data.get("processing_time_hours"),
        )
        return Response({"success": True, "order": OrderSerializer(order).data})

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.get_engine().cancel_order(
            pk,
            actor=_identity(request),
            reason=serializer.validated_data["reason"],
            by_admin=request.user.is_staff,
        )
        return Response({"success": True, "order": OrderSerializer(order).data})
