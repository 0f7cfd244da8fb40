"""Public listing of the cities the shop delivers to."""

from __future__ import annotations

from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.zones.repositories.django_repository import DeliveryZoneDjangoRepository
from modules.zones.serializers import DeliveryZoneSerializer


class DeliveryZoneViewSet(GenericViewSet):
    """GET /api/v1/delivery-zones/ (checkout needs it before login)."""

    permission_classes = [AllowAny]
    serializer_class = DeliveryZoneSerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = DeliveryZoneDjangoRepository()

    def get_queryset(self):
        return self._repository.list_active()

    def list(self, request: Request) -> Response:
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response(serializer.data)
