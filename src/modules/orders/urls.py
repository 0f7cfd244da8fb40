"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import (
    CustomerOrderViewSet,
    DeliveryOrderViewSet,
    InstallmentNotificationsView,
    OrderViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")
router.register("shop/orders", CustomerOrderViewSet, basename="shop-order")
router.register("delivery/orders", DeliveryOrderViewSet, basename="delivery-order")

urlpatterns = [
    path(
        "notifications/installments/",
        InstallmentNotificationsView.as_view(),
        name="installment-notifications",
    ),
] + router.urls
