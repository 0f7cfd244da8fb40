"""Unit tests for OrderService.

Covers:
- Checkout: zone snapshot, price snapshot, stock reservation and
  rollback on failure.
- Staff patch: role gates, FINANCIAL field dropping, any-to-any status,
  delivery fee recomputation.
- Cash flow side effects of ``paid_at`` on non-BOLETO orders.
- Admin reads and filters.
"""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from modules.accounts.constants import Role
from modules.accounts.permissions import permission_resolver
from modules.cashflow.constants import EntryType
from modules.cashflow.models import CashFlowEntry
from modules.cashflow.repositories.django_repository import CashFlowDjangoRepository
from modules.cashflow.services import CashFlowService
from modules.core.exceptions import AuthorizationDenied, ValidationFailed
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, UpdateOrderDTO
from modules.orders.exceptions import (
    EmptyOrderUpdate,
    InvalidOrderStatus,
    InvalidPaymentMethod,
    OrderNotFound,
)
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.exceptions import InactiveProduct, InsufficientStock, ProductNotFound
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.zones.exceptions import ZoneUnavailable
from modules.zones.repositories.django_repository import DeliveryZoneDjangoRepository

pytestmark = pytest.mark.unit

UTC = dt_timezone.utc
PAID_AT = datetime(2024, 1, 15, 3, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        zone_repository=DeliveryZoneDjangoRepository(),
        cash_flow_service=CashFlowService(
            entry_repository=CashFlowDjangoRepository(),
            permission_resolver=permission_resolver,
        ),
        permission_resolver=permission_resolver,
    )


@pytest.fixture()
def second_product():
    return Product.objects.create(name="Cesta de Café", price=Decimal("45.50"), stock=3)


def _checkout_dto(zone, *items, **overrides):
    data = {
        "items": [
            CreateOrderItemDTO(product_id=product.id, quantity=quantity)
            for product, quantity in items
        ],
        "delivery_zone_id": zone.id,
        "customer_name": "Maria Silva",
        "phone": "11988887777",
        "delivery_address": "Rua das Flores",
        "delivery_number": "10",
        "delivery_neighborhood": "Centro",
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


# ===========================================================================
# Checkout
# ===========================================================================


class TestCreateOrder:
    def test_creates_pending_unpaid_order(
        self, service, customer, zone, product, second_product
    ):
        dto = _checkout_dto(zone, (product, 2), (second_product, 1))
        order = service.create_order(customer, dto)

        assert order.status == OrderStatus.PENDING
        assert order.paid_at is None
        assert order.payment_method == PaymentMethod.PIX
        assert order.subtotal == Decimal("245.50")
        assert order.delivery_fee == Decimal("15.00")
        assert order.total == Decimal("260.50")
        assert order.delivery_city == "São Paulo"
        assert order.delivery_state == "SP"
        assert order.items.count() == 2

    def test_reserves_stock(self, service, customer, zone, product):
        service.create_order(customer, _checkout_dto(zone, (product, 5)))
        product.refresh_from_db()
        assert product.stock == 45

    def test_snapshots_price(self, service, customer, zone, product):
        order = service.create_order(customer, _checkout_dto(zone, (product, 1)))
        Product.objects.filter(id=product.id).update(price=Decimal("999.00"))
        assert order.items.get().unit_price == Decimal("100.00")

    def test_inactive_zone(self, service, customer, zone, product):
        zone.active = False
        zone.save()
        with pytest.raises(ZoneUnavailable):
            service.create_order(customer, _checkout_dto(zone, (product, 1)))

    def test_unknown_product(self, service, customer, zone, product):
        dto = CreateOrderDTO(
            **{
                **_checkout_dto(zone, (product, 1)).model_dump(),
                "items": [CreateOrderItemDTO(product_id=uuid4(), quantity=1)],
            }
        )
        with pytest.raises(ProductNotFound):
            service.create_order(customer, dto)

    def test_inactive_product(self, service, customer, zone, product):
        product.is_active = False
        product.save()
        with pytest.raises(InactiveProduct):
            service.create_order(customer, _checkout_dto(zone, (product, 1)))

    def test_insufficient_stock_rolls_back_everything(
        self, service, customer, zone, product, second_product
    ):
        dto = _checkout_dto(zone, (product, 5), (second_product, 10))
        with pytest.raises(InsufficientStock):
            service.create_order(customer, dto)

        product.refresh_from_db()
        second_product.refresh_from_db()
        assert product.stock == 50
        assert second_product.stock == 3
        assert Order.objects.count() == 0


# ===========================================================================
# Staff patch
# ===========================================================================


class TestUpdateOrderRoles:
    def test_admin_moves_status_backwards(self, service, make_order):
        order = make_order(status=OrderStatus.DELIVERED)
        updated = service.update_order(
            str(order.id), Role.ADMIN, UpdateOrderDTO(status=OrderStatus.PENDING)
        )
        assert updated.status == OrderStatus.PENDING

    def test_management_can_edit(self, service, make_order):
        order = make_order()
        updated = service.update_order(
            str(order.id), Role.MANAGEMENT, UpdateOrderDTO(status=OrderStatus.CONFIRMED)
        )
        assert updated.status == OrderStatus.CONFIRMED

    @pytest.mark.parametrize("role", [Role.DELIVERY, Role.USER])
    def test_non_staff_denied(self, service, make_order, role):
        order = make_order()
        with pytest.raises(AuthorizationDenied):
            service.update_order(str(order.id), role, UpdateOrderDTO(notes="x"))

    def test_financial_fields_dropped_silently(self, service, make_order):
        order = make_order(status=OrderStatus.PENDING)
        dto = UpdateOrderDTO(
            status=OrderStatus.DELIVERED,
            delivery_fee=Decimal("99.00"),
            payment_method=PaymentMethod.CASH,
        )
        updated = service.update_order(str(order.id), Role.FINANCIAL, dto)

        assert updated.status == OrderStatus.PENDING
        assert updated.delivery_fee == Decimal("15.00")
        assert updated.payment_method == PaymentMethod.CASH

    def test_financial_patch_with_only_blocked_fields(self, service, make_order):
        order = make_order()
        with pytest.raises(EmptyOrderUpdate):
            service.update_order(
                str(order.id), Role.FINANCIAL, UpdateOrderDTO(status=OrderStatus.DELIVERED)
            )

    def test_financial_invalid_status_is_dropped_not_rejected(self, service, make_order):
        order = make_order()
        updated = service.update_order(
            str(order.id), Role.FINANCIAL, UpdateOrderDTO(status="BOGUS", notes="ok")
        )
        assert updated.notes == "ok"


class TestUpdateOrderFields:
    def test_empty_patch(self, service, make_order):
        with pytest.raises(EmptyOrderUpdate):
            service.update_order(str(make_order().id), Role.ADMIN, UpdateOrderDTO())

    def test_invalid_status(self, service, make_order):
        with pytest.raises(InvalidOrderStatus):
            service.update_order(
                str(make_order().id), Role.ADMIN, UpdateOrderDTO(status="SHIPPED")
            )

    def test_invalid_payment_method(self, service, make_order):
        with pytest.raises(InvalidPaymentMethod):
            service.update_order(
                str(make_order().id), Role.ADMIN, UpdateOrderDTO(payment_method="CHEQUE")
            )

    def test_delivery_fee_recomputes_total(self, service, make_order):
        order = make_order()
        updated = service.update_order(
            str(order.id), Role.ADMIN, UpdateOrderDTO(delivery_fee=Decimal("7.50"))
        )
        assert updated.delivery_fee == Decimal("7.50")
        assert updated.total == Decimal("107.50")

    def test_delivery_date_set_and_cleared(self, service, make_order):
        order = make_order()
        updated = service.update_order(
            str(order.id), Role.ADMIN, UpdateOrderDTO(delivery_date=PAID_AT)
        )
        assert updated.delivery_date == PAID_AT
        cleared = service.update_order(
            str(order.id), Role.ADMIN, UpdateOrderDTO(delivery_date=None)
        )
        assert cleared.delivery_date is None

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.update_order(str(uuid4()), Role.ADMIN, UpdateOrderDTO(notes="x"))


class TestPaymentSideEffects:
    def test_marking_paid_creates_income_entry(self, service, make_order):
        order = make_order(payment_method=PaymentMethod.CREDIT_CARD)
        service.update_order(str(order.id), Role.FINANCIAL, UpdateOrderDTO(paid_at=PAID_AT))

        entry = CashFlowEntry.objects.get(order=order)
        assert entry.type == EntryType.INCOME
        assert entry.amount == Decimal("115.00")
        assert entry.payment_method == PaymentMethod.CREDIT_CARD
        assert entry.payment_date == PAID_AT
        assert entry.installment_number is None

    def test_marking_paid_twice_keeps_one_entry(self, service, make_order):
        order = make_order()
        later = datetime(2024, 1, 20, 3, 0, tzinfo=UTC)
        service.update_order(str(order.id), Role.ADMIN, UpdateOrderDTO(paid_at=PAID_AT))
        service.update_order(
            str(order.id),
            Role.ADMIN,
            UpdateOrderDTO(paid_at=later, payment_method=PaymentMethod.CASH),
        )

        entries = CashFlowEntry.objects.filter(order=order)
        assert entries.count() == 1
        assert entries.get().payment_date == later
        assert entries.get().payment_method == PaymentMethod.CASH

    def test_clearing_paid_at_removes_entry(self, service, make_order):
        order = make_order()
        service.update_order(str(order.id), Role.ADMIN, UpdateOrderDTO(paid_at=PAID_AT))
        updated = service.update_order(
            str(order.id), Role.ADMIN, UpdateOrderDTO(paid_at=None)
        )
        assert updated.paid_at is None
        assert not CashFlowEntry.objects.filter(order=order).exists()

    def test_boleto_paid_at_leaves_ledger_alone(self, service, make_order):
        order = make_order(payment_method=PaymentMethod.BOLETO)
        updated = service.update_order(
            str(order.id), Role.ADMIN, UpdateOrderDTO(paid_at=PAID_AT)
        )
        assert updated.paid_at == PAID_AT
        assert not CashFlowEntry.objects.filter(order=order).exists()

    def test_status_change_never_touches_paid_at(self, service, make_order):
        order = make_order(paid_at=PAID_AT)
        updated = service.update_order(
            str(order.id), Role.ADMIN, UpdateOrderDTO(status=OrderStatus.PENDING)
        )
        assert updated.paid_at == PAID_AT


# ===========================================================================
# Reads
# ===========================================================================


class TestReads:
    def test_get_order(self, service, make_order):
        order = make_order()
        assert service.get_order(str(order.id), Role.FINANCIAL).id == order.id

    def test_get_order_invalid_id(self, service):
        with pytest.raises(OrderNotFound):
            service.get_order("not-a-uuid", Role.ADMIN)

    def test_get_order_denied_for_courier(self, service, make_order):
        with pytest.raises(AuthorizationDenied):
            service.get_order(str(make_order().id), Role.DELIVERY)

    def test_list_filters_by_status_and_search(self, service, make_order):
        make_order(status=OrderStatus.PENDING, customer_name="Joana Prado")
        target = make_order(status=OrderStatus.CONFIRMED, customer_name="Pedro Alves")

        by_status = list(service.list_orders(Role.ADMIN, {"status": "CONFIRMED"}))
        by_name = list(service.list_orders(Role.ADMIN, {"search": "pedro"}))

        assert [o.id for o in by_status] == [target.id]
        assert [o.id for o in by_name] == [target.id]

    def test_list_search_by_short_id(self, service, make_order):
        target = make_order()
        make_order()
        found = list(service.list_orders(Role.ADMIN, {"search": str(target.id)[-8:]}))
        assert [o.id for o in found] == [target.id]

    def test_list_invalid_filter(self, service):
        with pytest.raises(ValidationFailed):
            service.list_orders(Role.ADMIN, {"status": "LOST"})

    def test_customer_sees_only_own_orders(self, service, make_order, make_user, customer):
        mine = make_order()
        make_order(user=make_user())
        assert [o.id for o in service.list_customer_orders(customer)] == [mine.id]
