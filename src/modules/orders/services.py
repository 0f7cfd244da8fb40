"""Order service layer (use cases).

Three services share the Order aggregate:

- ``OrderService``: checkout, staff reads and the staff patch
  (``update_order``), which drives status and payment state and writes
  the cash flow side effects of ``paid_at`` changes.
- ``InstallmentService``: BOLETO schedules and the per-installment
  pay/unpay toggle.
- ``DeliveryAssignmentService``: courier assignment and the courier's
  own status transitions.

Every write runs in one ``transaction.atomic`` block and locks the order
row (``SELECT FOR UPDATE``) before reading anything else, so concurrent
operations on the same order are serialised and never observe a
half-applied change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.accounts.constants import Role
from modules.accounts.exceptions import UserNotFound
from modules.accounts.permissions import require_full_admin
from modules.core.exceptions import AuthorizationDenied, ValidationFailed
from modules.orders.constants import (
    UNASSIGN_BLOCKED_STATUSES,
    OrderStatus,
    PaymentMethod,
)
from modules.orders.exceptions import (
    EmptyInstallmentSchedule,
    EmptyOrderUpdate,
    InstallmentNotFound,
    InvalidDeliveryPerson,
    InvalidPaymentMethod,
    NotAssignedDeliveryPerson,
    OrderNotAssignable,
    OrderNotFound,
    OrderNotUnassignable,
)
from modules.orders.state_machine import AdminStatusSetter, DeliveryTransitionValidator
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)
from modules.zones.exceptions import ZoneUnavailable

if TYPE_CHECKING:
    from datetime import datetime

    from modules.accounts.models import User
    from modules.accounts.permissions import PermissionResolver
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.cashflow.services import CashFlowService
    from modules.core.dates import LocalCalendarDate
    from modules.orders.dtos import (
        CreateOrderDTO,
        InstallmentInputDTO,
        InstallmentPaymentDTO,
        UpdateOrderDTO,
    )
    from modules.orders.models import BoletoInstallment, Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from modules.zones.repositories.interfaces import IDeliveryZoneRepository

logger = structlog.get_logger(__name__)

FINANCIAL_BLOCKED_FIELDS = ("status", "delivery_fee", "delivery_date")


class OrderService:
    """Application service for Order use cases.

    Receives repositories and collaborators via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        zone_repository: IDeliveryZoneRepository,
        cash_flow_service: CashFlowService,
        permission_resolver: PermissionResolver,
        status_setter: Optional[AdminStatusSetter] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._zone_repo = zone_repository
        self._cash_flow = cash_flow_service
        self._permissions = permission_resolver
        self._status_setter = status_setter or AdminStatusSetter()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, user: User, dto: CreateOrderDTO) -> Order:
        """Customer checkout.

        Steps:
        1. Resolve the active delivery zone (fee, city and state are
           copied onto the order).
        2. For each item, sorted by product id to avoid deadlocks: lock
           the product, check it is active and in stock, snapshot its
           price and decrement its stock.
        3. Persist order and items atomically.

        Raises:
            ZoneUnavailable: zone unknown or inactive.
            ProductNotFound: a product does not exist.
            InactiveProduct: a product is not for sale.
            InsufficientStock: not enough stock for a product.
        """
        log = logger.bind(user_id=str(user.id))
        log.info("order.creation_started", item_count=len(dto.items))

        zone = self._zone_repo.get_active(str(dto.delivery_zone_id))
        if not zone:
            raise ZoneUnavailable("Selected city is not available for delivery.")

        repo_items = []
        for item_dto in sorted(dto.items, key=lambda i: str(i.product_id)):
            product = self._product_repo.get_for_update(str(item_dto.product_id))
            if not product:
                raise ProductNotFound(f"Product {item_dto.product_id} not found.")
            if not product.is_active:
                raise InactiveProduct(f"Product {product.name} is not available.")
            if product.stock < item_dto.quantity:
                raise InsufficientStock(
                    f"Product {product.name}: requested {item_dto.quantity}, "
                    f"available {product.stock}."
                )

            product.stock -= item_dto.quantity
            self._product_repo.save(product)
            log.info(
                "order.stock_reserved",
                product_id=str(product.id),
                quantity=item_dto.quantity,
                remaining=product.stock,
            )
            repo_items.append(
                {
                    "product_id": product.id,
                    "quantity": item_dto.quantity,
                    "unit_price": product.price,
                }
            )

        order = self._order_repo.create(
            {
                "user": user,
                "status": OrderStatus.PENDING,
                "payment_method": dto.payment_method,
                "delivery_fee": zone.delivery_fee,
                "customer_name": dto.customer_name,
                "phone": dto.phone,
                "delivery_address": dto.delivery_address,
                "delivery_number": dto.delivery_number,
                "delivery_complement": dto.delivery_complement,
                "delivery_neighborhood": dto.delivery_neighborhood,
                "delivery_city": zone.city,
                "delivery_state": zone.state,
                "delivery_zone": zone,
                "notes": dto.notes,
                "items": repo_items,
            }
        )
        log.info("order.created", order_id=str(order.id), total=str(order.total))
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_order(
        self, order_id: str, actor_role: str, dto: UpdateOrderDTO
    ) -> Order:
        """Apply a staff patch to an order.

        FINANCIAL actors may only touch payment fields: ``status``,
        ``delivery_fee`` and ``delivery_date`` are dropped from their
        patch without error.  ``status`` accepts any known value from any
        current status.

        A ``paid_at`` change on a non-BOLETO order (judged by the
        payment method *after* the patch) upserts or removes the order's
        cash flow entry.  BOLETO ledger entries belong to the installment
        toggle and are never touched here.

        Raises:
            AuthorizationDenied: actor cannot edit orders.
            EmptyOrderUpdate: nothing left to apply.
            OrderNotFound: unknown order.
            ValidationFailed: bad status, payment method or delivery fee.
        """
        self._permissions.require(actor_role, "can_edit_orders")
        if actor_role == Role.FINANCIAL:
            ignored = sorted(dto.present() & set(FINANCIAL_BLOCKED_FIELDS))
            if ignored:
                logger.info(
                    "order.patch_fields_dropped", fields=ignored, role=actor_role
                )
            dto = dto.without(*FINANCIAL_BLOCKED_FIELDS)

        present = dto.present()
        if not present:
            raise EmptyOrderUpdate()

        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound()

        log = logger.bind(order_id=str(order.id), fields=sorted(present))

        if "status" in present:
            self._status_setter.apply(order, dto.status)
        if "payment_method" in present:
            if dto.payment_method not in PaymentMethod.values:
                raise InvalidPaymentMethod(
                    "Invalid payment method. Expected one of: "
                    f"{', '.join(PaymentMethod.values)}."
                )
            order.payment_method = dto.payment_method
        if "delivery_fee" in present:
            fee = dto.delivery_fee
            if fee is None or not Decimal(fee).is_finite():
                raise ValidationFailed("Delivery fee must be a number.")
            order.apply_delivery_fee(Decimal(fee))
        if "delivery_date" in present:
            order.delivery_date = dto.delivery_date
        if "notes" in present:
            order.notes = dto.notes or ""
        if "paid_at" in present:
            order.paid_at = dto.paid_at

        self._order_repo.save(order)

        if "paid_at" in present and not order.is_boleto:
            if order.paid_at is not None:
                self._cash_flow.record_order_payment(order, order.paid_at)
            else:
                removed = self._cash_flow.remove_order_payments(order)
                log.info("order.payment_cleared", removed_entries=removed)

        log.info("order.updated", status=order.status, paid=order.is_paid)
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, actor_role: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            AuthorizationDenied: actor cannot view orders.
            OrderNotFound: if the order does not exist.
        """
        self._permissions.require(actor_role, "can_view_orders")
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound()
        return order

    def list_orders(
        self, actor_role: str, filters: Optional[Mapping[str, Any]] = None
    ) -> Iterable[Order]:
        self._permissions.require(actor_role, "can_view_orders")
        return self._order_repo.search(filters or {})

    def list_customer_orders(self, user: User) -> List[Order]:
        return self._order_repo.list_for_customer(user.id)


class InstallmentService:
    """BOLETO installment schedules.  Every operation is ADMIN only."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        cash_flow_service: CashFlowService,
    ) -> None:
        self._order_repo = order_repository
        self._cash_flow = cash_flow_service

    def list_schedule(self, order_id: str, actor_role: str) -> List[BoletoInstallment]:
        require_full_admin(actor_role)
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound()
        return self._order_repo.list_installments(order.id)

    @transaction.atomic
    def replace_schedule(
        self,
        order_id: str,
        actor_role: str,
        installments: List[InstallmentInputDTO],
    ) -> List[BoletoInstallment]:
        """Delete the whole schedule and recreate it.

        Installment numbers follow list position (1-based).  Ledger
        entries of previously paid installments stay as received income
        but are detached from their numbers, and the order is no longer
        paid because the new schedule starts unpaid.

        Raises:
            AuthorizationDenied: actor is not ADMIN.
            EmptyInstallmentSchedule: empty list.
            OrderNotFound: unknown order.
        """
        require_full_admin(actor_role)
        if not installments:
            raise EmptyInstallmentSchedule()

        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound()

        rows = [
            {"amount": item.amount, "due_date": item.due_date.to_date()}
            for item in installments
        ]
        detached = self._cash_flow.detach_installment_payments(order)
        schedule = self._order_repo.replace_installments(order, rows)
        if order.paid_at is not None:
            order.paid_at = None
            self._order_repo.save(order)
            logger.info("order.payment_reopened", order_id=str(order.id))
        logger.info(
            "order.schedule_replaced",
            order_id=str(order.id),
            installments=len(schedule),
            detached_entries=detached,
            total=str(sum((inst.amount for inst in schedule), Decimal("0.00"))),
        )
        return schedule

    @transaction.atomic
    def set_installment_paid(
        self,
        order_id: str,
        installment_id: str,
        actor_role: str,
        dto: InstallmentPaymentDTO,
    ) -> BoletoInstallment:
        """Mark one installment paid or unpaid.

        Paid: ``paid_at`` is set (default now), the installment's INCOME
        entry is upserted, and once every installment is paid the order's
        ``paid_at`` takes the same payment date.

        Unpaid: ``paid_at`` is cleared, the installment's entry is
        deleted, and the order's ``paid_at`` is cleared because the
        schedule is no longer fully paid.

        Repeating the same call leaves the same state.

        Raises:
            AuthorizationDenied: actor is not ADMIN.
            OrderNotFound: unknown order.
            InstallmentNotFound: unknown installment or not from this order.
        """
        require_full_admin(actor_role)
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound()
        installment = self._order_repo.get_installment_for_update(
            order.id, installment_id
        )
        if not installment:
            raise InstallmentNotFound()
        installment.order = order

        log = logger.bind(
            order_id=str(order.id),
            installment_number=installment.installment_number,
        )

        if dto.paid:
            payment_date = dto.payment_date or timezone.now()
            installment.paid_at = payment_date
            self._order_repo.save_installment(installment)
            self._cash_flow.record_installment_payment(order, installment, payment_date)

            total, paid = self._order_repo.installment_payment_counts(order.id)
            if total and paid == total:
                order.paid_at = payment_date
                self._order_repo.save(order)
                log.info("order.fully_paid", paid_at=payment_date.isoformat())
            log.info("order.installment_paid", paid=paid, total=total)
        else:
            installment.paid_at = None
            self._order_repo.save_installment(installment)
            self._cash_flow.remove_installment_payment(
                order, installment.installment_number
            )
            if order.paid_at is not None:
                order.paid_at = None
                self._order_repo.save(order)
                log.info("order.payment_reopened")
            log.info("order.installment_unpaid")

        return installment


@dataclass
class Itinerary:
    delivery_person: User
    confirmed: List[Order] = field(default_factory=list)
    in_route: List[Order] = field(default_factory=list)
    delivered: List[Order] = field(default_factory=list)


class DeliveryAssignmentService:
    """Assigns couriers to orders and runs the courier's own transitions."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        user_repository: IUserRepository,
        permission_resolver: PermissionResolver,
        transition_validator: Optional[DeliveryTransitionValidator] = None,
    ) -> None:
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._permissions = permission_resolver
        self._transitions = transition_validator or DeliveryTransitionValidator()

    # ------------------------------------------------------------------
    # Staff commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def assign(
        self, order_id: str, delivery_person_id: Optional[str], actor_role: str
    ) -> Order:
        """Give a CONFIRMED order to a courier; reassignment is allowed.

        The status stays CONFIRMED: assignment is not a transition.

        Raises:
            AuthorizationDenied: actor cannot assign deliveries.
            InvalidDeliveryPerson: id missing, unknown or not a courier.
            OrderNotFound: unknown order.
            OrderNotAssignable: order is not CONFIRMED.
        """
        self._permissions.require(actor_role, "can_assign_delivery")
        if not delivery_person_id:
            raise InvalidDeliveryPerson("Delivery person id is required.")

        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound()

        courier = self._user_repo.get_by_id(str(delivery_person_id))
        if not courier or courier.role != Role.DELIVERY:
            raise InvalidDeliveryPerson()
        if order.status != OrderStatus.CONFIRMED:
            raise OrderNotAssignable()

        previous = order.delivery_person_id
        order.delivery_person = courier
        self._order_repo.save(order)
        logger.info(
            "order.delivery_assigned",
            order_id=str(order.id),
            delivery_person_id=str(courier.id),
            reassigned=previous is not None,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def unassign(self, order_id: str, actor_role: str) -> Order:
        """Release the courier of an order that has not left yet.

        Raises:
            AuthorizationDenied: actor cannot assign deliveries.
            OrderNotFound: unknown order.
            OrderNotUnassignable: order is IN_ROUTE or DELIVERED.
        """
        self._permissions.require(actor_role, "can_assign_delivery")
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound()
        if order.status in UNASSIGN_BLOCKED_STATUSES:
            raise OrderNotUnassignable()

        order.delivery_person = None
        self._order_repo.save(order)
        logger.info("order.delivery_unassigned", order_id=str(order.id))
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Courier self-service
    # ------------------------------------------------------------------

    @transaction.atomic
    def advance(self, order_id: str, delivery_user: User, action: str) -> Order:
        """Courier moves their own order one step forward.

        Never touches ``paid_at``.

        Raises:
            AuthorizationDenied: caller is not a courier.
            OrderNotFound: unknown order.
            NotAssignedDeliveryPerson: order belongs to another courier.
            InvalidDeliveryAction: unknown action.
            DeliveryTransitionNotAllowed: action not valid from the current status.
        """
        if delivery_user.role != Role.DELIVERY:
            raise AuthorizationDenied()
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound()
        if order.delivery_person_id != delivery_user.id:
            logger.warning(
                "order.delivery_scope_violation",
                order_id=str(order.id),
                user_id=str(delivery_user.id),
            )
            raise NotAssignedDeliveryPerson()

        old_status = order.status
        order.status = self._transitions.next_status(order.status, action)
        self._order_repo.save(order)
        logger.info(
            "order.delivery_advanced",
            order_id=str(order.id),
            action=action,
            old_status=old_status,
            new_status=order.status,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_for_delivery_person(
        self,
        delivery_user: User,
        status: Optional[str] = None,
        day: Optional[LocalCalendarDate] = None,
    ) -> List[Order]:
        """A courier's own orders.

        With ``status=DELIVERED`` and a ``day``, only orders finished on
        that local day are returned.
        """
        if delivery_user.role != Role.DELIVERY:
            raise AuthorizationDenied()
        if status and status not in OrderStatus.values:
            raise ValidationFailed("Invalid status filter.")

        updated_between: Optional[tuple[datetime, datetime]] = None
        if status == OrderStatus.DELIVERED and day is not None:
            updated_between = (day.to_local_midnight(), day.end_of_day())
        return self._order_repo.list_for_delivery_person(
            delivery_user.id, status=status, updated_between=updated_between
        )

    def available_orders(self, actor_role: str) -> List[Order]:
        require_full_admin(actor_role)
        return self._order_repo.list_available()

    def itinerary(self, delivery_person_id: str, actor_role: str) -> Itinerary:
        """A courier's orders split by delivery stage (ADMIN only)."""
        require_full_admin(actor_role)
        courier = self._user_repo.get_by_id(delivery_person_id)
        if not courier:
            raise UserNotFound()
        if courier.role != Role.DELIVERY:
            raise InvalidDeliveryPerson("This user is not a delivery person.")

        itinerary = Itinerary(delivery_person=courier)
        buckets = {
            OrderStatus.CONFIRMED: itinerary.confirmed,
            OrderStatus.IN_ROUTE: itinerary.in_route,
            OrderStatus.DELIVERED: itinerary.delivered,
        }
        for order in self._order_repo.list_for_delivery_person(courier.id):
            bucket = buckets.get(order.status)
            if bucket is not None:
                bucket.append(order)
        return itinerary
