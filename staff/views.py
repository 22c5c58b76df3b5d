# staff/views.py
#
# Purpose:
# - Providers manage their team and opening hours.
#   * /api/staff/           StaffMember CRUD
#   * /api/working-hours/   WorkingHours CRUD (one live row per provider)
#
# Notes:
# - Providers see and change only their own rows; staff (is_staff) see
#   everything and may narrow with ?provider=<id>.
# - Deletes are soft.
#
from rest_framework import viewsets

from core.permissions import IsProviderOrStaff, ensure_acting_for
from .models import StaffMember, WorkingHours
from .serializers import StaffMemberSerializer, WorkingHoursSerializer


class ProviderOwnedViewSet(viewsets.ModelViewSet):
    permission_classes = [IsProviderOrStaff]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]
    owned_model = None

    def get_queryset(self):
        qs = self.owned_model.objects.filter(is_deleted=False).order_by("id")
        user = self.request.user
        if not user.is_staff:
            return qs.filter(provider_id=user.get_username())
        provider_id = (self.request.query_params.get("provider") or "").strip()
        return qs.filter(provider_id=provider_id) if provider_id else qs

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
        instance.save(update_fields=["is_deleted", "updated_at"])


class StaffMemberViewSet(ProviderOwnedViewSet):
    owned_model = StaffMember
    serializer_class = StaffMemberSerializer

    def perform_destroy(self, instance):
        instance.is_active = False
        instance.is_deleted = True
        instance.save(update_fields=["is_deleted", "is_active", "updated_at"])


class WorkingHoursViewSet(ProviderOwnedViewSet):
    owned_model = WorkingHours
    serializer_class = WorkingHoursSerializer
