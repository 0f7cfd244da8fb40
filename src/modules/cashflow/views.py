"""Cash flow API views.

Capability checks happen in ``CashFlowService``; this layer only parses
input and shapes output.  Domain errors propagate to the project-wide
exception handler.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.access import AdminSurfaceAccess
from modules.accounts.permissions import permission_resolver
from modules.cashflow.dtos import CreateEntryDTO, UpdateEntryDTO
from modules.cashflow.repositories.django_repository import CashFlowDjangoRepository
from modules.cashflow.serializers import (
    CashFlowEntrySerializer,
    CashFlowSummarySerializer,
    CreateEntrySerializer,
    UpdateEntrySerializer,
)
from modules.cashflow.services import CashFlowService


class CashFlowViewSet(GenericViewSet):
    """Ledger entries and their totals.

    ``GET /api/v1/cashflow/`` accepts ``date_from``, ``date_to`` (local
    ``YYYY-MM-DD``), ``type`` and ``search``.
    """

    permission_classes = [AdminSurfaceAccess]
    serializer_class = CashFlowEntrySerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CashFlowService(
            entry_repository=CashFlowDjangoRepository(),
            permission_resolver=permission_resolver,
        )

    def list(self, request: Request) -> Response:
        entries = self._service.list(request.user.role, request.query_params)
        summary = self._service.summarize(entries)
        return Response(
            {
                "entries": CashFlowEntrySerializer(entries, many=True).data,
                "summary": CashFlowSummarySerializer(summary.model_dump()).data,
            }
        )

    def create(self, request: Request) -> Response:
        serializer = CreateEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dto = CreateEntryDTO(
            type=data["type"],
            amount=data["amount"],
            description=data["description"],
            payment_date=data["payment_date"],
            payment_method=data.get("payment_method") or None,
        )
        entry = self._service.create(request.user.role, dto)
        return Response(
            CashFlowEntrySerializer(entry).data, status=status.HTTP_201_CREATED
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        entry = self._service.get(request.user.role, pk)
        return Response(CashFlowEntrySerializer(entry).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        serializer = UpdateEntrySerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        dto = UpdateEntryDTO(**serializer.validated_data)
        entry = self._service.update(request.user.role, pk, dto)
        return Response(CashFlowEntrySerializer(entry).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        self._service.delete(request.user.role, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
