"""Cash flow repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cashflow.models import CashFlowEntry


class ICashFlowRepository(IRepository["CashFlowEntry"]):
    """Repository contract for ledger entries.

    Entries tied to a payment are addressed by ``(order_id,
    installment_number)``; ``installment_number=None`` means the single
    entry of a non-BOLETO order.
    """

    @abstractmethod
    def search(self, filters: Mapping[str, Any]) -> Iterable[CashFlowEntry]:
        """Entries matching ``date_from``/``date_to``/``type``/``search``.

        Raises ``InvalidEntry`` when a filter value cannot be parsed.
        """

    @abstractmethod
    def get_payment_entry(
        self, order_id: Any, installment_number: Optional[int] = None
    ) -> Optional[CashFlowEntry]:
        """Entry recorded for an order payment or one of its installments."""

    @abstractmethod
    def delete(self, entity: CashFlowEntry) -> None:
        """Remove a single entry."""

    @abstractmethod
    def delete_for_order(self, order_id: Any) -> int:
        """Remove every entry linked to the order; returns how many."""

    @abstractmethod
    def delete_payment_entry(self, order_id: Any, installment_number: int) -> int:
        """Remove the entry of one installment; returns how many."""

    @abstractmethod
    def detach_installment_entries(self, order_id: Any) -> int:
        """Unlink installment entries from their numbers, keeping them as income."""
