# addresses/views.py
#
# Purpose:
# - Signed-in users keep their own pickup/delivery addresses.
#   * GET    /api/addresses/                              my addresses, default first
#   * POST   /api/addresses/                              add one
#   * PATCH  /api/addresses/{id}/                         edit
#   * DELETE /api/addresses/{id}/                         soft delete
#   * GET    /api/addresses/{id}/coverage/?provider=<id>  can that provider serve it?
#
# Notes:
# - Only the caller's own addresses are visible; anything else answers 404.
# - Marking an address as default clears the flag on the others in the same
#   transaction.
#
import logging

from django.db import transaction
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.errors import InvalidArgument
from slots.services.coverage import ServiceAreaCoverage
from .models import UserAddress
from .serializers import UserAddressSerializer

logger = logging.getLogger(__name__)


class UserAddressViewSet(viewsets.ModelViewSet):
    serializer_class = UserAddressSerializer
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        return UserAddress.objects.filter(user_id=self.request.user.get_username(), is_deleted=False)

    def _clear_other_defaults(self, keep_pk):
        cleared = (
            self.get_queryset()
            .filter(is_default=True)
            .exclude(pk=keep_pk)
            .update(is_default=False)
        )
        if cleared:
            logger.debug("cleared %s previous default address(es) for %s", cleared, self.request.user.get_username())

    @transaction.atomic
    def perform_create(self, serializer):
        address = serializer.save(user_id=self.request.user.get_username())
        if address.is_default:
            self._clear_other_defaults(address.pk)

    @transaction.atomic
    def perform_update(self, serializer):
        address = serializer.save()
        if address.is_default:
            self._clear_other_defaults(address.pk)

    def perform_destroy(self, instance):
        instance.is_deleted = True
        instance.is_default = False
        instance.save(update_fields=["is_deleted", "is_default", "updated_at"])

    @action(detail=True, methods=["get"])
    def coverage(self, request, pk=None):
        address = self.get_object()
        provider_id = (request.query_params.get("provider") or "").strip()
        if not provider_id:
            raise InvalidArgument("Query parameter 'provider' is required.")
        area = ServiceAreaCoverage().covering_area(provider_id, address.latitude, address.longitude)
        return Response({
            "success": True,
            "inServiceArea": area is not None,
            "areaId": area.id if area else None,
        })
