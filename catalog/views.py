# catalog/views.py
#
# Purpose:
# - Providers publish what they sell.
#   * GET    /api/services/?provider=<id>   live services of a provider
#   * POST   /api/services/                 add one (provider itself or staff)
#   * PATCH  /api/services/{id}/            edit
#   * DELETE /api/services/{id}/            soft delete
#
# Notes:
# - Anyone signed in can browse; only the owning provider or staff can write.
# - A provider cannot move a service to another provider_id.
#
from rest_framework import viewsets

from core.errors import InvalidArgument
from core.permissions import IsProviderOrStaff, ensure_acting_for
from .models import Service
from .serializers import ServiceSerializer


class ServiceViewSet(viewsets.ModelViewSet):
    serializer_class = ServiceSerializer
    permission_classes = [IsProviderOrStaff]
    public_read = True
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        qs = Service.objects.filter(is_deleted=False).order_by("name", "id")
        if self.action != "list":
            return qs
        provider_id = (self.request.query_params.get("provider") or "").strip()
        if not provider_id:
            raise InvalidArgument("Query parameter 'provider' is required.")
        return qs.filter(provider_id=provider_id)

    def perform_create(self, serializer):
        ensure_acting_for(self.request, serializer.validated_data["provider_id"])
        serializer.save()

    def perform_update(self, serializer):
        ensure_acting_for(
            self.request,
            serializer.validated_data.get("provider_id", serializer.instance.provider_id),
        )
        serializer.save()

    def perform_destroy(self, instance):
        instance.is_deleted = True
        instance.is_active = False
        instance.save(update_fields=["is_deleted", "is_active", "updated_at"])
