"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Write
operations are wrapped in ``transaction.atomic()`` so the aggregate
(Order + OrderItems + BoletoInstallments) is persisted atomically.

Concurrency control uses ``select_for_update()`` on the order row:
every state-machine operation locks the order first, which serialises
concurrent updates of the same order and its installments.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Prefetch, Q, QuerySet

from modules.core.exceptions import ValidationFailed
from modules.orders.constants import OrderStatus
from modules.orders.filters import OrderFilter
from modules.orders.models import BoletoInstallment, Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _read_queryset(self) -> QuerySet:
        """Orders with relations eager-loaded to avoid N+1 queries."""
        return Order.objects.select_related(
            "user", "delivery_person"
        ).prefetch_related(
            "items__product",
            Prefetch(
                "installments",
                queryset=BoletoInstallment.objects.order_by("installment_number"),
            ),
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        items = data.get("items", [])
        order = Order(**{key: value for key, value in data.items() if key != "items"})
        order.save()

        subtotal = Decimal("0.00")
        for item_data in items:
            item = OrderItem(
                order=order,
                product_id=item_data["product_id"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()
            subtotal += item.subtotal

        order.subtotal = subtotal
        order.apply_delivery_fee(order.delivery_fee)
        order.save(update_fields=["subtotal", "delivery_fee", "total"])

        log = logger.bind(order_id=str(order.id), item_count=len(items))
        log.info("order.persisted", total=str(order.total))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Order with eager-loaded relations; ``None`` for unknown/invalid ids."""
        try:
            return self._read_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = self._read_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def search(self, filters: Mapping[str, Any]) -> QuerySet:
        filterset = OrderFilter(data=filters, queryset=self._read_queryset())
        if not filterset.is_valid():
            fields = ", ".join(sorted(filterset.errors))
            raise ValidationFailed(f"Invalid filter value: {fields}.")
        return filterset.qs.order_by("-created_at", "-id")

    def list_for_customer(self, user_id: Any) -> List[Order]:
        return list(self._read_queryset().filter(user_id=user_id))

    def list_for_delivery_person(
        self,
        user_id: Any,
        status: Optional[str] = None,
        updated_between: Optional[Tuple[datetime, datetime]] = None,
    ) -> List[Order]:
        queryset = self._read_queryset().filter(delivery_person_id=user_id)
        if status:
            queryset = queryset.filter(status=status)
        if updated_between:
            queryset = queryset.filter(updated_at__range=updated_between)
        return list(queryset.order_by("-created_at"))

    def list_unpaid(self) -> List[Order]:
        return list(self._read_queryset().filter(paid_at__isnull=True))

    def list_available(self) -> List[Order]:
        return list(
            self._read_queryset()
            .filter(status=OrderStatus.CONFIRMED, delivery_person__isnull=True)
            .order_by("created_at")
        )

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    # ------------------------------------------------------------------
    # Installments
    # ------------------------------------------------------------------

    def list_installments(self, order_id: Any) -> List[BoletoInstallment]:
        return list(
            BoletoInstallment.objects.filter(order_id=order_id).order_by(
                "installment_number"
            )
        )

    @transaction.atomic
    def replace_installments(
        self, order: Order, rows: List[Dict[str, Any]]
    ) -> List[BoletoInstallment]:
        deleted, _ = BoletoInstallment.objects.filter(order=order).delete()
        created = BoletoInstallment.objects.bulk_create(
            [
                BoletoInstallment(
                    order=order,
                    installment_number=position,
                    amount=row["amount"],
                    due_date=row["due_date"],
                )
                for position, row in enumerate(rows, start=1)
            ]
        )
        logger.info(
            "order.installments_replaced",
            order_id=str(order.id),
            removed=deleted,
            created=len(created),
        )
        return self.list_installments(order.id)

    def get_installment_for_update(
        self, order_id: Any, installment_id: str
    ) -> Optional[BoletoInstallment]:
        try:
            return (
                BoletoInstallment.objects.select_for_update()
                .filter(id=installment_id, order_id=order_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save_installment(self, installment: BoletoInstallment) -> BoletoInstallment:
        installment.save()
        return installment

    def installment_payment_counts(self, order_id: Any) -> Tuple[int, int]:
        counts = BoletoInstallment.objects.filter(order_id=order_id).aggregate(
            total=Count("id"),
            paid=Count("id", filter=Q(paid_at__isnull=False)),
        )
        return counts["total"], counts["paid"]

    def list_unpaid_installments(self) -> List[BoletoInstallment]:
        return list(
            BoletoInstallment.objects.select_related("order")
            .filter(paid_at__isnull=True)
            .order_by("due_date", "installment_number")
        )
