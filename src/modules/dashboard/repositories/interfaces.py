"""Read-only aggregate queries behind the dashboard."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, Tuple

Window = Tuple[datetime, datetime]


class IStatsRepository(ABC):
    @abstractmethod
    def order_counts_by_status(self) -> Dict[str, int]:
        """Number of orders per status (statuses without orders omitted)."""

    @abstractmethod
    def count_orders_created(self, window: Window) -> int:
        """Orders whose ``created_at`` falls inside *window*."""

    @abstractmethod
    def paid_revenue(self, window: Window) -> Decimal:
        """Sum of order totals with ``paid_at`` inside *window*."""

    @abstractmethod
    def count_products(self) -> int:
        """Every product, active or not."""

    @abstractmethod
    def user_counts_by_role(self) -> Dict[str, int]:
        """Number of users per role."""

    @abstractmethod
    def count_active_deliveries(self) -> int:
        """Orders assigned to a courier and still CONFIRMED or IN_ROUTE."""

    @abstractmethod
    def cash_flow_totals(self, window: Window) -> Dict[str, Decimal]:
        """Sum of entry amounts per type with ``payment_date`` inside *window*."""
