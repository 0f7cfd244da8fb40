"""Cash flow ledger service.

Two kinds of callers:

- Financial staff, through the ``/cashflow/`` endpoints.  Every call
  checks the matching ``can_*_cash_flow`` capability.
- The order and installment services, which record and remove payment
  entries as a side effect of ``paid_at`` changes.  Those methods do not
  check capabilities: the calling service has already authorized the
  actor, and they always run inside the caller's transaction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional

import structlog
from django.db import transaction

from modules.cashflow.constants import (
    INSTALLMENT_ENTRY_DESCRIPTION,
    ORDER_ENTRY_DESCRIPTION,
    EntryType,
)
from modules.cashflow.dtos import CashFlowSummary
from modules.cashflow.exceptions import EntryNotFound, InvalidEntry
from modules.cashflow.models import CashFlowEntry
from modules.orders.constants import PaymentMethod

if TYPE_CHECKING:
    from modules.accounts.permissions import PermissionResolver
    from modules.cashflow.dtos import CreateEntryDTO, UpdateEntryDTO
    from modules.cashflow.repositories.interfaces import ICashFlowRepository
    from modules.orders.models import BoletoInstallment, Order

logger = structlog.get_logger(__name__)


class CashFlowService:
    def __init__(
        self,
        entry_repository: ICashFlowRepository,
        permission_resolver: PermissionResolver,
    ) -> None:
        self._entry_repo = entry_repository
        self._permissions = permission_resolver

    # ------------------------------------------------------------------
    # Manual entries
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, actor_role: str, dto: CreateEntryDTO) -> CashFlowEntry:
        self._permissions.require(actor_role, "can_create_cash_flow")
        entry = CashFlowEntry(
            type=dto.type,
            amount=dto.amount,
            description=dto.description,
            payment_method=dto.payment_method,
            payment_date=dto.payment_date,
        )
        self._entry_repo.save(entry)
        logger.info(
            "cashflow.entry_created",
            entry_id=str(entry.id),
            type=entry.type,
            amount=str(entry.amount),
        )
        return entry

    @transaction.atomic
    def update(
        self, actor_role: str, entry_id: str, dto: UpdateEntryDTO
    ) -> CashFlowEntry:
        """Apply only the fields present in *dto*.

        Raises:
            AuthorizationDenied: actor cannot edit cash flow.
            EntryNotFound: unknown entry.
            InvalidEntry: a required field was sent as null or blank.
        """
        self._permissions.require(actor_role, "can_edit_cash_flow")
        entry = self._entry_repo.get_by_id(entry_id)
        if not entry:
            raise EntryNotFound()

        changes = dto.changes()
        for field in ("type", "amount", "description", "payment_date"):
            if field in changes and changes[field] in (None, ""):
                raise InvalidEntry(f"Field '{field}' cannot be empty.")

        for field, value in changes.items():
            setattr(entry, field, value)
        self._entry_repo.save(entry)
        logger.info(
            "cashflow.entry_updated",
            entry_id=str(entry.id),
            fields=sorted(changes),
        )
        return entry

    @transaction.atomic
    def delete(self, actor_role: str, entry_id: str) -> None:
        self._permissions.require(actor_role, "can_delete_cash_flow")
        entry = self._entry_repo.get_by_id(entry_id)
        if not entry:
            raise EntryNotFound()
        self._entry_repo.delete(entry)

    def get(self, actor_role: str, entry_id: str) -> CashFlowEntry:
        self._permissions.require(actor_role, "can_view_cash_flow")
        entry = self._entry_repo.get_by_id(entry_id)
        if not entry:
            raise EntryNotFound()
        return entry

    def list(
        self, actor_role: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[CashFlowEntry]:
        """Entries newest payment first, filtered by date range, type and text."""
        self._permissions.require(actor_role, "can_view_cash_flow")
        return list(self._entry_repo.search(filters or {}))

    @staticmethod
    def summarize(entries: Iterable[CashFlowEntry]) -> CashFlowSummary:
        income = Decimal("0.00")
        expense = Decimal("0.00")
        for entry in entries:
            if entry.type == EntryType.INCOME:
                income += entry.amount
            elif entry.type == EntryType.EXPENSE:
                expense += entry.amount
        return CashFlowSummary(
            total_income=income,
            total_expense=expense,
            balance=income - expense,
        )

    # ------------------------------------------------------------------
    # Payment side effects
    # ------------------------------------------------------------------

    def record_order_payment(
        self, order: Order, payment_date: datetime
    ) -> CashFlowEntry:
        """Upsert the single INCOME entry of a non-BOLETO order.

        A new entry takes the order's current total.  An existing one
        only gets its payment method and date refreshed.
        """
        entry = self._entry_repo.get_payment_entry(order.id)
        if entry is None:
            entry = CashFlowEntry(
                type=EntryType.INCOME,
                amount=order.total,
                description=ORDER_ENTRY_DESCRIPTION.format(order=order.short_id),
                payment_method=order.payment_method,
                payment_date=payment_date,
                order=order,
            )
            event = "cashflow.order_payment_recorded"
        else:
            entry.payment_method = order.payment_method
            entry.payment_date = payment_date
            event = "cashflow.order_payment_refreshed"
        self._entry_repo.save(entry)
        logger.info(event, order_id=str(order.id), amount=str(entry.amount))
        return entry

    def remove_order_payments(self, order: Order) -> int:
        """Delete every entry linked to the order."""
        return self._entry_repo.delete_for_order(order.id)

    def record_installment_payment(
        self,
        order: Order,
        installment: BoletoInstallment,
        payment_date: datetime,
    ) -> CashFlowEntry:
        """Upsert the INCOME entry of one BOLETO installment."""
        entry = self._entry_repo.get_payment_entry(
            order.id, installment.installment_number
        )
        if entry is None:
            entry = CashFlowEntry(
                order=order, installment_number=installment.installment_number
            )
        entry.type = EntryType.INCOME
        entry.amount = installment.amount
        entry.description = INSTALLMENT_ENTRY_DESCRIPTION.format(
            number=installment.installment_number, order=order.short_id
        )
        entry.payment_method = PaymentMethod.BOLETO
        entry.payment_date = payment_date
        self._entry_repo.save(entry)
        logger.info(
            "cashflow.installment_payment_recorded",
            order_id=str(order.id),
            installment_number=installment.installment_number,
            amount=str(entry.amount),
        )
        return entry

    def remove_installment_payment(self, order: Order, installment_number: int) -> int:
        return self._entry_repo.delete_payment_entry(order.id, installment_number)

    def detach_installment_payments(self, order: Order) -> int:
        """Keep received installment income when the schedule is replaced.

        Detached entries lose their ``installment_number`` so the new
        schedule's numbers never resolve to them.
        """
        return self._entry_repo.detach_installment_entries(order.id)
