from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import ServiceableAreaViewSet, SlotViewSet

router = DefaultRouter()
router.register(r"areas", ServiceableAreaViewSet, basename="area")
router.register(r"slots", SlotViewSet, basename="slot")

urlpatterns = [path("", include(router.urls))]
