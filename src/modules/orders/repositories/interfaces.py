"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items, row locks for the state machine, the
installment schedule (a child collection of the order) and the read
models used by couriers, reminders and dashboards.

The service layer depends exclusively on this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import BoletoInstallment, Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderItem and BoletoInstallment children.
    Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` carries the order's snapshot fields plus ``items``: a
        list of dicts with ``product_id``, ``quantity``, ``unit_price``.
        ``subtotal`` and ``total`` are derived from the items and
        ``delivery_fee``.
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def search(self, filters: Mapping[str, Any]) -> Iterable[Order]:
        """Admin list filtered by ``search``/``status``/``payment_method``/dates."""

    @abstractmethod
    def list_for_customer(self, user_id: Any) -> List[Order]:
        """A customer's own orders, newest first."""

    @abstractmethod
    def list_for_delivery_person(
        self,
        user_id: Any,
        status: Optional[str] = None,
        updated_between: Optional[Tuple[datetime, datetime]] = None,
    ) -> List[Order]:
        """Orders assigned to a courier."""

    @abstractmethod
    def list_unpaid(self) -> List[Order]:
        """Orders with ``paid_at IS NULL`` and their installments, newest first."""

    @abstractmethod
    def list_available(self) -> List[Order]:
        """CONFIRMED orders without a delivery person."""

    # ------------------------------------------------------------------
    # Installments
    # ------------------------------------------------------------------

    @abstractmethod
    def list_installments(self, order_id: Any) -> List[BoletoInstallment]:
        """Installments of an order ordered by number."""

    @abstractmethod
    def replace_installments(
        self, order: Order, rows: List[Dict[str, Any]]
    ) -> List[BoletoInstallment]:
        """Delete every installment of *order* and create *rows* in order."""

    @abstractmethod
    def get_installment_for_update(
        self, order_id: Any, installment_id: str
    ) -> Optional[BoletoInstallment]:
        """Locked installment, only if it belongs to the order."""

    @abstractmethod
    def save_installment(self, installment: BoletoInstallment) -> BoletoInstallment:
        """Persist an installment."""

    @abstractmethod
    def installment_payment_counts(self, order_id: Any) -> Tuple[int, int]:
        """``(total, paid)`` installment counts for the order."""

    @abstractmethod
    def list_unpaid_installments(self) -> List[BoletoInstallment]:
        """Unpaid installments across all orders, earliest due first."""
