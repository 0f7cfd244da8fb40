"""Delivery roster API.

``/delivery-persons/`` lists couriers, promotes a customer by email and
demotes a courier back to customer.  ``/delivery-persons/{id}/orders/``
returns a courier's itinerary.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.access import AdminSurfaceAccess
from modules.accounts.models import User
from modules.accounts.permissions import permission_resolver
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.serializers import (
    DeliveryPersonSerializer,
    ItinerarySerializer,
    PromoteDeliveryPersonSerializer,
)
from modules.accounts.services import DeliveryRosterService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import DeliveryAssignmentService


class DeliveryPersonViewSet(GenericViewSet):
    queryset = User.objects.none()
    serializer_class = DeliveryPersonSerializer
    permission_classes = [AdminSurfaceAccess]
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        user_repository = UserDjangoRepository()
        self._roster = DeliveryRosterService(
            user_repository=user_repository,
            permission_resolver=permission_resolver,
        )
        self._delivery = DeliveryAssignmentService(
            order_repository=OrderDjangoRepository(),
            user_repository=user_repository,
            permission_resolver=permission_resolver,
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/delivery-persons/"""
        couriers = self._roster.list_delivery_persons(request.user.role)
        return Response(DeliveryPersonSerializer(couriers, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/delivery-persons/ with ``{"email": ...}``"""
        serializer = PromoteDeliveryPersonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self._roster.promote(
            request.user.role, serializer.validated_data["email"]
        )
        return Response(
            DeliveryPersonSerializer(user).data, status=status.HTTP_201_CREATED
        )

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/delivery-persons/{pk}/ (demote to customer)."""
        user = self._roster.demote(request.user.role, pk)
        return Response(
            {
                "message": "Delivery person removed.",
                "user": DeliveryPersonSerializer(user).data,
            }
        )

    @action(detail=True, methods=["get"])
    def orders(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/delivery-persons/{pk}/orders/"""
        itinerary = self._delivery.itinerary(pk, request.user.role)
        return Response(ItinerarySerializer(itinerary).data)
