from __future__ import annotations

from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.access import AdminSurfaceAccess
from modules.accounts.permissions import permission_resolver
from modules.dashboard.repositories.django_repository import StatsDjangoRepository
from modules.dashboard.services import DashboardService
from modules.products.repositories.django_repository import ProductDjangoRepository


class DashboardStatsView(APIView):
    """GET /api/v1/dashboard/stats/"""

    permission_classes = [AdminSurfaceAccess]

    def get(self, request: Request) -> Response:
        service = DashboardService(
            stats_repository=StatsDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            permission_resolver=permission_resolver,
        )
        return Response(service.stats(request.user.role))
