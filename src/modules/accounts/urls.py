"""Delivery roster URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.accounts.views import DeliveryPersonViewSet

router = DefaultRouter(trailing_slash=True)
router.register("delivery-persons", DeliveryPersonViewSet, basename="delivery-person")

urlpatterns = router.urls
