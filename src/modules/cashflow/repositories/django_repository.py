"""Django ORM implementation of the cash flow repository."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.cashflow.exceptions import EntryNotFound, InvalidEntry
from modules.cashflow.filters import CashFlowFilter
from modules.cashflow.models import CashFlowEntry
from modules.cashflow.repositories.interfaces import ICashFlowRepository
from modules.orders.constants import PaymentMethod

logger = structlog.get_logger(__name__)


class CashFlowDjangoRepository(ICashFlowRepository):
    def _base_queryset(self) -> QuerySet:
        return CashFlowEntry.objects.select_related("order")

    def get_by_id(self, id: str) -> Optional[CashFlowEntry]:
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CashFlowEntry]:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def search(self, filters: Mapping[str, Any]) -> QuerySet:
        filterset = CashFlowFilter(data=filters, queryset=self._base_queryset())
        if not filterset.is_valid():
            fields = ", ".join(sorted(filterset.errors))
            raise InvalidEntry(f"Invalid filter value: {fields}.")
        return filterset.qs.order_by("-payment_date", "-created_at")

    def get_payment_entry(
        self, order_id: Any, installment_number: Optional[int] = None
    ) -> Optional[CashFlowEntry]:
        queryset = CashFlowEntry.objects.select_for_update().filter(order_id=order_id)
        if installment_number is None:
            queryset = queryset.filter(installment_number__isnull=True).exclude(
                payment_method=PaymentMethod.BOLETO
            )
        else:
            queryset = queryset.filter(installment_number=installment_number)
        return queryset.first()

    @transaction.atomic
    def save(self, entity: CashFlowEntry) -> CashFlowEntry:
        entity.save()
        logger.info(
            "cashflow.entry_saved",
            entry_id=str(entity.id),
            type=entity.type,
            order_id=str(entity.order_id) if entity.order_id else None,
        )
        return entity

    @transaction.atomic
    def delete(self, entity: CashFlowEntry) -> None:
        if entity.pk is None:
            raise EntryNotFound()
        entry_id = str(entity.id)
        entity.delete()
        logger.info("cashflow.entry_deleted", entry_id=entry_id)

    @transaction.atomic
    def delete_for_order(self, order_id: Any) -> int:
        deleted, _ = CashFlowEntry.objects.filter(order_id=order_id).delete()
        logger.info("cashflow.order_entries_deleted", order_id=str(order_id), count=deleted)
        return deleted

    @transaction.atomic
    def delete_payment_entry(self, order_id: Any, installment_number: int) -> int:
        deleted, _ = CashFlowEntry.objects.filter(
            order_id=order_id, installment_number=installment_number
        ).delete()
        logger.info(
            "cashflow.installment_entry_deleted",
            order_id=str(order_id),
            installment_number=installment_number,
            count=deleted,
        )
        return deleted

    @transaction.atomic
    def detach_installment_entries(self, order_id: Any) -> int:
        detached = CashFlowEntry.objects.filter(
            order_id=order_id, installment_number__isnull=False
        ).update(installment_number=None)
        logger.info(
            "cashflow.installment_entries_detached",
            order_id=str(order_id),
            count=detached,
        )
        return detached
