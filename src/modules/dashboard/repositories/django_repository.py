"""Django ORM implementation of the dashboard statistics repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict

from django.db.models import Count, Sum

from modules.accounts.models import User
from modules.cashflow.models import CashFlowEntry
from modules.dashboard.repositories.interfaces import IStatsRepository, Window
from modules.orders.constants import ACTIVE_DELIVERY_STATUSES
from modules.orders.models import Order
from modules.products.models import Product

ZERO = Decimal("0.00")


class StatsDjangoRepository(IStatsRepository):
    def order_counts_by_status(self) -> Dict[str, int]:
        rows = Order.objects.order_by().values("status").annotate(count=Count("id"))
        return {row["status"]: row["count"] for row in rows}

    def count_orders_created(self, window: Window) -> int:
        return Order.objects.filter(created_at__range=window).count()

    def paid_revenue(self, window: Window) -> Decimal:
        result = Order.objects.filter(paid_at__range=window).aggregate(
            revenue=Sum("total")
        )
        return result["revenue"] or ZERO

    def count_products(self) -> int:
        return Product.objects.count()

    def user_counts_by_role(self) -> Dict[str, int]:
        rows = User.objects.order_by().values("role").annotate(count=Count("id"))
        return {row["role"]: row["count"] for row in rows}

    def count_active_deliveries(self) -> int:
        return Order.objects.filter(
            delivery_person__isnull=False,
            status__in=ACTIVE_DELIVERY_STATUSES,
        ).count()

    def cash_flow_totals(self, window: Window) -> Dict[str, Decimal]:
        rows = (
            CashFlowEntry.objects.filter(payment_date__range=window)
            .order_by()
            .values("type")
            .annotate(amount=Sum("amount"))
        )
        return {row["type"]: row["amount"] or ZERO for row in rows}
