"""Delivery zone URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.zones.views import DeliveryZoneViewSet

router = DefaultRouter(trailing_slash=True)
router.register("delivery-zones", DeliveryZoneViewSet, basename="delivery-zone")

urlpatterns = router.urls
