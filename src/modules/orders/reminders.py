"""Payment reminders: urgency of unpaid orders and installments.

The classifier functions are pure: they take ``now`` explicitly and
never touch the database.  Urgency is recomputed on every read and never
stored.

BOLETO orders with unpaid installments are judged by the earliest unpaid
due date::

    days = ceil((local midnight of due_date - now) / 1 day)
    overdue   if days < 0
    upcoming  if 0 <= days <= 3
    normal    otherwise

Every other unpaid order is judged by its age::

    age = floor((now - created_at) / 1 day)
    overdue   if age > 7
    upcoming  if age > 3
    normal    otherwise
    days_until_due = -age
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Tuple

import structlog
from django.utils import timezone

from modules.accounts.permissions import require_full_admin
from modules.core.dates import DAY, LocalCalendarDate
from modules.orders.constants import (
    INSTALLMENT_UPCOMING_DAYS,
    UNPAID_ORDER_OVERDUE_AGE,
    UNPAID_ORDER_UPCOMING_AGE,
)

if TYPE_CHECKING:
    from modules.accounts.permissions import PermissionResolver
    from modules.orders.models import BoletoInstallment, Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class Urgency(str, Enum):
    OVERDUE = "overdue"
    UPCOMING = "upcoming"
    NORMAL = "normal"


@dataclass(frozen=True)
class UrgencyAssessment:
    urgency_level: Urgency
    days_until_due: int
    next_due_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Pure classifiers
# ---------------------------------------------------------------------------


def days_until(due_date: date, now: datetime) -> int:
    """Whole days (rounded up) from *now* to local midnight of *due_date*."""
    due = LocalCalendarDate.from_date(due_date).to_local_midnight()
    return math.ceil((due - now) / DAY)


def classify_installment_due(due_date: date, now: datetime) -> UrgencyAssessment:
    days = days_until(due_date, now)
    if days < 0:
        level = Urgency.OVERDUE
    elif days <= INSTALLMENT_UPCOMING_DAYS:
        level = Urgency.UPCOMING
    else:
        level = Urgency.NORMAL
    return UrgencyAssessment(level, days, due_date)


def classify_order_age(created_at: datetime, now: datetime) -> UrgencyAssessment:
    age = math.floor((now - created_at) / DAY)
    if age > UNPAID_ORDER_OVERDUE_AGE:
        level = Urgency.OVERDUE
    elif age > UNPAID_ORDER_UPCOMING_AGE:
        level = Urgency.UPCOMING
    else:
        level = Urgency.NORMAL
    return UrgencyAssessment(level, -age, None)


def classify_order(
    order: Order,
    unpaid_installments: Iterable[BoletoInstallment],
    now: datetime,
) -> UrgencyAssessment:
    """Urgency of an unpaid order."""
    if order.is_boleto:
        pending = [inst for inst in unpaid_installments if inst.paid_at is None]
        if pending:
            earliest = min(
                pending, key=lambda inst: (inst.due_date, inst.installment_number)
            )
            return classify_installment_due(earliest.due_date, now)
    return classify_order_age(order.created_at, now)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


@dataclass
class UnpaidOrdersReport:
    orders: List[Tuple[Order, UrgencyAssessment]] = field(default_factory=list)

    def by_level(self, level: Urgency) -> List[Tuple[Order, UrgencyAssessment]]:
        return [pair for pair in self.orders if pair[1].urgency_level == level]

    @property
    def total(self) -> int:
        return len(self.orders)


@dataclass
class InstallmentReminders:
    upcoming: List[Tuple[BoletoInstallment, UrgencyAssessment]] = field(
        default_factory=list
    )
    overdue: List[Tuple[BoletoInstallment, UrgencyAssessment]] = field(
        default_factory=list
    )

    @property
    def count(self) -> int:
        return len(self.upcoming) + len(self.overdue)


class ReminderService:
    """Builds the unpaid-orders board and the installment reminder list."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        permission_resolver: PermissionResolver,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._order_repo = order_repository
        self._permissions = permission_resolver
        self._clock = clock

    def unpaid_orders(
        self, actor_role: str, now: Optional[datetime] = None
    ) -> UnpaidOrdersReport:
        """Every order with ``paid_at`` NULL, whatever its status, newest first."""
        self._permissions.require(actor_role, "can_view_unpaid_orders")
        now = now or self._clock()
        report = UnpaidOrdersReport()
        for order in self._order_repo.list_unpaid():
            assessment = classify_order(order, order.installments.all(), now)
            report.orders.append((order, assessment))
        return report

    def installment_notifications(
        self, actor_role: str, now: Optional[datetime] = None
    ) -> InstallmentReminders:
        require_full_admin(actor_role)
        return self._collect_installment_reminders(now or self._clock())

    def scan(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Count what is due right now; used by the periodic task."""
        now = now or self._clock()
        reminders = self._collect_installment_reminders(now)
        report = UnpaidOrdersReport(
            orders=[
                (order, classify_order(order, order.installments.all(), now))
                for order in self._order_repo.list_unpaid()
            ]
        )
        counts = {
            "installments_upcoming": len(reminders.upcoming),
            "installments_overdue": len(reminders.overdue),
            "orders_upcoming": len(report.by_level(Urgency.UPCOMING)),
            "orders_overdue": len(report.by_level(Urgency.OVERDUE)),
        }
        logger.info("reminders.scanned", **counts)
        return counts

    def _collect_installment_reminders(self, now: datetime) -> InstallmentReminders:
        reminders = InstallmentReminders()
        for installment in self._order_repo.list_unpaid_installments():
            assessment = classify_installment_due(installment.due_date, now)
            if assessment.urgency_level == Urgency.OVERDUE:
                reminders.overdue.append((installment, assessment))
            elif assessment.urgency_level == Urgency.UPCOMING:
                reminders.upcoming.append((installment, assessment))
        return reminders
