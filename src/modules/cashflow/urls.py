"""Cash flow URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.cashflow.views import CashFlowViewSet

router = DefaultRouter(trailing_slash=True)
router.register("cashflow", CashFlowViewSet, basename="cashflow")

urlpatterns = router.urls
