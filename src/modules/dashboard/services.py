"""Administrative dashboard statistics.

Each section is included only when the actor's capabilities allow the
matching admin screen, so a FINANCIAL user never sees catalogue or user
counts and MANAGEMENT never sees cash flow figures.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog
from django.utils import timezone

from modules.accounts.constants import Role
from modules.cashflow.constants import EntryType
from modules.core.dates import LocalCalendarDate
from modules.core.exceptions import AuthorizationDenied
from modules.orders.constants import LOW_STOCK_THRESHOLD, OrderStatus

if TYPE_CHECKING:
    from modules.accounts.permissions import PermissionResolver
    from modules.dashboard.repositories.interfaces import IStatsRepository, Window
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def local_windows(now: datetime) -> Dict[str, Window]:
    """``today`` and ``month`` (month to date) windows in local time."""
    local_now = timezone.localtime(now)
    today = LocalCalendarDate.from_date(local_now.date())
    first_of_month = LocalCalendarDate(today.year, today.month, 1)
    return {
        "today": (today.to_local_midnight(), today.end_of_day()),
        "month": (first_of_month.to_local_midnight(), today.end_of_day()),
    }


class DashboardService:
    def __init__(
        self,
        stats_repository: IStatsRepository,
        product_repository: IProductRepository,
        permission_resolver: PermissionResolver,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._stats = stats_repository
        self._product_repo = product_repository
        self._permissions = permission_resolver
        self._clock = clock

    def stats(self, actor_role: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Sections keyed ``orders``, ``products``, ``users``, ``deliveries``
        and ``cash_flow``; absent when the actor lacks the capability.

        Raises:
            AuthorizationDenied: role has no admin capability at all.
        """
        capabilities = self._permissions.resolve(actor_role)
        windows = local_windows(now or self._clock())
        result: Dict[str, Any] = {}

        if capabilities.can_view_orders:
            result["orders"] = self._order_section(windows)
        if capabilities.can_view_products:
            result["products"] = {
                "total": self._stats.count_products(),
                "low_stock": self._product_repo.count_low_stock(LOW_STOCK_THRESHOLD),
            }
        if capabilities.can_view_users:
            by_role = self._stats.user_counts_by_role()
            result["users"] = {
                "total": sum(by_role.values()),
                "by_role": {role: by_role.get(role, 0) for role in Role.values},
            }
        if capabilities.can_view_delivery_persons:
            result["deliveries"] = {
                "active": self._stats.count_active_deliveries(),
                "delivery_persons": self._stats.user_counts_by_role().get(
                    Role.DELIVERY, 0
                ),
            }
        if capabilities.can_view_cash_flow:
            result["cash_flow"] = self._cash_flow_section(windows)

        if not result:
            raise AuthorizationDenied()
        logger.debug("dashboard.stats_built", sections=sorted(result), role=actor_role)
        return result

    def _order_section(self, windows: Dict[str, Window]) -> Dict[str, Any]:
        by_status = self._stats.order_counts_by_status()
        return {
            "total": sum(by_status.values()),
            "by_status": {
                status: by_status.get(status, 0) for status in OrderStatus.values
            },
            "today": self._stats.count_orders_created(windows["today"]),
            "this_month": self._stats.count_orders_created(windows["month"]),
            "month_revenue": self._stats.paid_revenue(windows["month"]),
        }

    def _cash_flow_section(self, windows: Dict[str, Window]) -> Dict[str, Decimal]:
        today = self._stats.cash_flow_totals(windows["today"])
        month = self._stats.cash_flow_totals(windows["month"])
        income = month.get(EntryType.INCOME, ZERO)
        expense = month.get(EntryType.EXPENSE, ZERO)
        return {
            "today_income": today.get(EntryType.INCOME, ZERO),
            "month_income": income,
            "month_expense": expense,
            "balance": income - expense,
        }
