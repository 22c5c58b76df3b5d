from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import StaffMemberViewSet, WorkingHoursViewSet

router = DefaultRouter()
router.register(r"staff", StaffMemberViewSet, basename="staff-member")
router.register(r"working-hours", WorkingHoursViewSet, basename="working-hours")

urlpatterns = [path("", include(router.urls))]
