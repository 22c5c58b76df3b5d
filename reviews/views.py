# reviews/views.py
#
# Purpose:
# - Requesters review their completed orders.
#   * GET    /api/reviews/?order=<id>   reviews of one order
#   * GET    /api/reviews/              my reviews
#   * POST   /api/reviews/              review a completed order
#   * PATCH  /api/reviews/{id}/         edit rating / comment / images
#   * DELETE /api/reviews/{id}/         soft delete
#
# Notes:
# - Edits and deletes only see the caller's own reviews, so someone else's
#   review answers 404.
#
from rest_framework import viewsets

from .models import Review
from .serializers import ReviewSerializer


class ReviewViewSet(viewsets.ModelViewSet):
    serializer_class = ReviewSerializer
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        qs = Review.objects.filter(is_deleted=False).order_by("-created_at", "-id")
        me = self.request.user.get_username()

        if self.action in ("partial_update", "destroy"):
            return qs.filter(author_id=me)

        order_id = self.request.query_params.get("order")
        if order_id:
            return qs.filter(order_id=order_id) if order_id.isdigit() else qs.none()
        if self.action == "retrieve":
            return qs
        return qs.filter(author_id=me)

    def perform_create(self, serializer):
        serializer.save(author_id=self.request.user.get_username())

    def perform_destroy(self, instance):
        instance.is_deleted = True
        instance.save(update_fields=["is_deleted", "updated_at"])
