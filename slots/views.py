# slots/views.py
#
# Purpose:
# - Serviceable areas: anyone signed in can read, staff manage them.
#   Deleting an area only flags it (is_deleted) so old orders keep their history.
#   /api/areas/coverage/ tells whether a point is served by a provider at all.
# - Slots: read-only here. Capacity changes only through order creation;
#   staff set up slots and sub-slots in the Django admin.
#
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.errors import InvalidArgument
from core.permissions import IsStaffOrReadOnly
from .models import ServiceableArea, Slot
from .serializers import ServiceableAreaSerializer, SlotSerializer
from .services.coverage import ServiceAreaCoverage, read_location


class ServiceableAreaViewSet(viewsets.ModelViewSet):
    serializer_class = ServiceableAreaSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        qs = ServiceableArea.objects.filter(is_deleted=False).order_by("id")
        provider_id = (self.request.query_params.get("provider") or "").strip()
        if provider_id:
            qs = qs.filter(provider_id=provider_id)
        return qs

    def perform_destroy(self, instance):
        instance.is_deleted = True
        instance.is_active = False
        instance.save(update_fields=["is_deleted", "is_active", "updated_at"])

    @action(detail=True, methods=["get"])
    def contains(self, request, pk=None):
        """
        GET /api/areas/{id}/contains/?lat=..&lon=..
        Tells whether a point (e.g. a pickup address) falls inside the area.
        """
        area = self.get_object()
        try:
            lat = float(request.query_params["lat"])
            lon = float(request.query_params["lon"])
        except (KeyError, ValueError):
            raise InvalidArgument("Query parameters 'lat' and 'lon' must be numbers.")
        return Response({"area": area.id, "contains": area.contains(lat, lon)})

    @action(detail=False, methods=["get"])
    def coverage(self, request):
        """
        GET /api/areas/coverage/?provider=..&latitude=..&longitude=..
        Is the point inside any active area of the provider? Names the first match.
        """
        provider_id = (request.query_params.get("provider") or "").strip()
        if not provider_id:
            raise InvalidArgument("Query parameter 'provider' is required.")
        latitude, longitude = read_location(request.query_params, "Location")
        area = ServiceAreaCoverage().covering_area(provider_id, latitude, longitude)
        return Response({
            "success": True,
            "inServiceArea": area is not None,
            "areaId": area.id if area else None,
        })


class SlotViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SlotSerializer

    def get_queryset(self):
        qs = Slot.objects.filter(area__is_deleted=False).prefetch_related("sub_slots").order_by("date", "id")
        area_id = (self.request.query_params.get("area") or "").strip()
        if area_id:
            if not area_id.isdigit():
                raise InvalidArgument("'area' must be a numeric id.")
            qs = qs.filter(area_id=int(area_id))
        return qs
