"""Order API views.

Exposes the order services over HTTP using DRF ViewSets, one per
surface:

- ``OrderViewSet``: staff surface under ``/orders/``.
- ``CustomerOrderViewSet``: customer checkout and history under
  ``/shop/orders/``.
- ``DeliveryOrderViewSet``: courier self-service under
  ``/delivery/orders/``.
- ``InstallmentNotificationsView``: installment reminders.

Views never catch domain exceptions: the project exception handler maps
them to HTTP responses.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Tuple

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.access import AdminSurfaceAccess, DeliverySurfaceAccess
from modules.accounts.permissions import permission_resolver
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.cashflow.repositories.django_repository import CashFlowDjangoRepository
from modules.cashflow.services import CashFlowService
from modules.core.dates import LocalCalendarDate
from modules.core.exceptions import ValidationFailed
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    InstallmentInputDTO,
    InstallmentPaymentDTO,
    UpdateOrderDTO,
)
from modules.orders.models import Order
from modules.orders.reminders import Urgency, UrgencyAssessment, ReminderService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AssignDeliverySerializer,
    CreateOrderSerializer,
    DeliveryActionSerializer,
    InstallmentInputSerializer,
    InstallmentPaymentSerializer,
    InstallmentReminderSerializer,
    InstallmentSerializer,
    OrderListSerializer,
    OrderSerializer,
    ReplaceScheduleSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import (
    DeliveryAssignmentService,
    InstallmentService,
    OrderService,
)
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.zones.repositories.django_repository import DeliveryZoneDjangoRepository


def build_order_service() -> OrderService:
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


def build_delivery_service() -> DeliveryAssignmentService:
    return DeliveryAssignmentService(
        order_repository=OrderDjangoRepository(),
        user_repository=UserDjangoRepository(),
        permission_resolver=permission_resolver,
    )


def _with_urgency(pair: Tuple[Order, UrgencyAssessment]) -> Dict[str, Any]:
    order, assessment = pair
    data = dict(OrderSerializer(order).data)
    data["urgency_level"] = assessment.urgency_level.value
    data["days_until_due"] = assessment.days_until_due
    data["next_due_date"] = (
        assessment.next_due_date.isoformat() if assessment.next_due_date else None
    )
    return data


def _reminder_rows(pairs: Iterable[Tuple[Any, UrgencyAssessment]]) -> list:
    rows = []
    for installment, assessment in pairs:
        data = dict(InstallmentReminderSerializer(installment).data)
        data["days_until_due"] = assessment.days_until_due
        rows.append(data)
    return rows


class OrderViewSet(GenericViewSet):
    """Staff surface for orders.

    Uses the order services with injected repositories.  Does **not**
    extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [AdminSurfaceAccess]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        order_repository = OrderDjangoRepository()
        cash_flow = CashFlowService(
            entry_repository=CashFlowDjangoRepository(),
            permission_resolver=permission_resolver,
        )
        self._service = build_order_service()
        self._installments = InstallmentService(
            order_repository=order_repository,
            cash_flow_service=cash_flow,
        )
        self._delivery = build_delivery_service()
        self._reminders = ReminderService(
            order_repository=order_repository,
            permission_resolver=permission_resolver,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filters: ``search``, ``status``, ``payment_method``, ``date_from``,
        ``date_to``.  Results are paginated.
        """
        queryset = self._service.list_orders(request.user.role, request.query_params)
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk, request.user.role)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Staff patch
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Any subset of ``status``, ``payment_method``, ``delivery_fee``,
        ``delivery_date``, ``paid_at``, ``notes``.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = UpdateOrderDTO(**serializer.validated_data)
        order = self._service.update_order(pk, request.user.role, dto)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Delivery assignment
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post", "delete"])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        """POST/DELETE /api/v1/orders/{pk}/assign/"""
        if request.method == "DELETE":
            order = self._delivery.unassign(pk, request.user.role)
            return Response(OrderSerializer(order).data)

        serializer = AssignDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._delivery.assign(
            pk,
            serializer.validated_data.get("delivery_person_id"),
            request.user.role,
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Installments
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"])
    def installments(self, request: Request, pk: str | None = None) -> Response:
        """GET/POST /api/v1/orders/{pk}/installments/"""
        if request.method == "GET":
            schedule = self._installments.list_schedule(pk, request.user.role)
            return Response(InstallmentSerializer(schedule, many=True).data)

        serializer = ReplaceScheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rows = [
            InstallmentInputDTO(amount=row["amount"], due_date=row["due_date"])
            for row in serializer.validated_data["installments"]
        ]
        schedule = self._installments.replace_schedule(pk, request.user.role, rows)
        return Response(
            InstallmentSerializer(schedule, many=True).data,
            status=status.HTTP_201_CREATED,
        )

    @action(
        detail=True,
        methods=["patch"],
        url_path=r"installments/(?P<installment_id>[^/.]+)/pay",
        url_name="installment-pay",
    )
    def pay_installment(
        self,
        request: Request,
        pk: str | None = None,
        installment_id: str | None = None,
    ) -> Response:
        """PATCH /api/v1/orders/{pk}/installments/{installment_id}/pay/"""
        serializer = InstallmentPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = InstallmentPaymentDTO(**serializer.validated_data)
        installment = self._installments.set_installment_paid(
            pk, installment_id, request.user.role, dto
        )
        return Response(
            {
                "installment": InstallmentSerializer(installment).data,
                "order_paid_at": installment.order.paid_at,
            }
        )

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def unpaid(self, request: Request) -> Response:
        """GET /api/v1/orders/unpaid/

        Every order with ``paid_at`` NULL, whatever its status, enriched
        with ``urgency_level``, ``days_until_due`` and ``next_due_date``.
        """
        report = self._reminders.unpaid_orders(request.user.role)
        return Response(
            {
                "orders": [_with_urgency(pair) for pair in report.orders],
                "overdue": [
                    _with_urgency(pair) for pair in report.by_level(Urgency.OVERDUE)
                ],
                "upcoming": [
                    _with_urgency(pair) for pair in report.by_level(Urgency.UPCOMING)
                ],
                "normal": [
                    _with_urgency(pair) for pair in report.by_level(Urgency.NORMAL)
                ],
                "total": report.total,
            }
        )

    @action(detail=False, methods=["get"])
    def available(self, request: Request) -> Response:
        """GET /api/v1/orders/available/ (confirmed, no courier yet)."""
        orders = self._delivery.available_orders(request.user.role)
        return Response(OrderSerializer(orders, many=True).data)


class CustomerOrderViewSet(GenericViewSet):
    """Checkout and order history of the authenticated customer."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scopes per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action == "list":
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def list(self, request: Request) -> Response:
        """GET /api/v1/shop/orders/"""
        orders = self._service.list_customer_orders(request.user)
        return Response(OrderSerializer(orders, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/shop/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(
                    product_id=item["product_id"], quantity=item["quantity"]
                )
                for item in data["items"]
            ],
            delivery_zone_id=data["delivery_zone_id"],
            customer_name=data["customer_name"],
            phone=data["phone"],
            delivery_address=data["delivery_address"],
            delivery_number=data["delivery_number"],
            delivery_neighborhood=data["delivery_neighborhood"],
            delivery_complement=data.get("delivery_complement", ""),
            payment_method=data.get("payment_method"),
            notes=data.get("notes", ""),
        )
        order = self._service.create_order(request.user, dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class DeliveryOrderViewSet(GenericViewSet):
    """Courier self-service: own orders and the two route actions."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [DeliverySurfaceAccess]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_delivery_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/delivery/orders/?status=DELIVERED&date=YYYY-MM-DD"""
        day = None
        raw_date = request.query_params.get("date")
        if raw_date:
            try:
                day = LocalCalendarDate.parse(raw_date)
            except ValueError as exc:
                raise ValidationFailed(str(exc)) from exc

        orders = self._service.list_for_delivery_person(
            request.user,
            status=request.query_params.get("status") or None,
            day=day,
        )
        return Response({"orders": OrderSerializer(orders, many=True).data})

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/delivery/orders/{pk}/ with ``{"action": ...}``"""
        serializer = DeliveryActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.advance(
            pk, request.user, serializer.validated_data["action"]
        )
        return Response(OrderSerializer(order).data)


class InstallmentNotificationsView(APIView):
    """GET /api/v1/notifications/installments/"""

    permission_classes = [AdminSurfaceAccess]

    def get(self, request: Request) -> Response:
        service = ReminderService(
            order_repository=OrderDjangoRepository(),
            permission_resolver=permission_resolver,
        )
        reminders = service.installment_notifications(request.user.role)
        return Response(
            {
                "upcoming": _reminder_rows(reminders.upcoming),
                "overdue": _reminder_rows(reminders.overdue),
                "count": reminders.count,
            }
        )
