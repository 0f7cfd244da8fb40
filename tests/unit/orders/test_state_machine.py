"""Unit tests for the two order state machines.

Covers:
- Staff status setter: any known status from any status, including
  backwards moves; unknown values rejected.
- Courier transitions: only CONFIRMED→IN_ROUTE (start_route) and
  IN_ROUTE→DELIVERED (confirm_delivery); everything else rejected.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from modules.core.exceptions import InvalidStateTransition, ValidationFailed
from modules.orders.constants import DeliveryAction, OrderStatus
from modules.orders.exceptions import (
    DeliveryTransitionNotAllowed,
    InvalidDeliveryAction,
    InvalidOrderStatus,
)
from modules.orders.state_machine import AdminStatusSetter, DeliveryTransitionValidator

pytestmark = pytest.mark.unit


class TestAdminStatusSetter:
    @pytest.mark.parametrize("current", OrderStatus.values)
    @pytest.mark.parametrize("target", OrderStatus.values)
    def test_any_to_any(self, current, target):
        order = SimpleNamespace(id="o-1", status=current)
        previous = AdminStatusSetter().apply(order, target)
        assert previous == current
        assert order.status == target

    def test_delivered_back_to_pending(self):
        order = SimpleNamespace(id="o-1", status=OrderStatus.DELIVERED)
        AdminStatusSetter().apply(order, OrderStatus.PENDING)
        assert order.status == OrderStatus.PENDING

    @pytest.mark.parametrize("value", ["CANCELLED", "pending", ""])
    def test_unknown_status_rejected(self, value):
        order = SimpleNamespace(id="o-1", status=OrderStatus.PENDING)
        with pytest.raises(InvalidOrderStatus) as excinfo:
            AdminStatusSetter().apply(order, value)
        assert isinstance(excinfo.value, ValidationFailed)
        assert order.status == OrderStatus.PENDING


class TestDeliveryTransitionValidator:
    def test_start_route(self):
        validator = DeliveryTransitionValidator()
        assert (
            validator.next_status(OrderStatus.CONFIRMED, DeliveryAction.START_ROUTE)
            == OrderStatus.IN_ROUTE
        )

    def test_confirm_delivery(self):
        validator = DeliveryTransitionValidator()
        assert (
            validator.next_status(OrderStatus.IN_ROUTE, DeliveryAction.CONFIRM_DELIVERY)
            == OrderStatus.DELIVERED
        )

    @pytest.mark.parametrize(
        "current,action",
        [
            (OrderStatus.PENDING, DeliveryAction.START_ROUTE),
            (OrderStatus.IN_ROUTE, DeliveryAction.START_ROUTE),
            (OrderStatus.DELIVERED, DeliveryAction.START_ROUTE),
            (OrderStatus.CONFIRMED, DeliveryAction.CONFIRM_DELIVERY),
            (OrderStatus.PENDING, DeliveryAction.CONFIRM_DELIVERY),
            (OrderStatus.DELIVERED, DeliveryAction.CONFIRM_DELIVERY),
        ],
    )
    def test_non_adjacent_moves_rejected(self, current, action):
        with pytest.raises(DeliveryTransitionNotAllowed) as excinfo:
            DeliveryTransitionValidator().next_status(current, action)
        assert isinstance(excinfo.value, InvalidStateTransition)

    def test_unknown_action(self):
        with pytest.raises(InvalidDeliveryAction):
            DeliveryTransitionValidator().next_status(OrderStatus.CONFIRMED, "teleport")

    def test_allowed_actions(self):
        validator = DeliveryTransitionValidator()
        assert validator.allowed_actions(OrderStatus.CONFIRMED) == ["start_route"]
        assert validator.allowed_actions(OrderStatus.IN_ROUTE) == ["confirm_delivery"]
        assert validator.allowed_actions(OrderStatus.DELIVERED) == []

    def test_custom_table(self):
        validator = DeliveryTransitionValidator(
            {"skip": (OrderStatus.CONFIRMED, OrderStatus.DELIVERED)}
        )
        assert validator.next_status(OrderStatus.CONFIRMED, "skip") == OrderStatus.DELIVERED
