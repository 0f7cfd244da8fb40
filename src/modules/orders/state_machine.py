"""The two order state machines.

Staff and couriers move orders through the same statuses under
different rules:

- ``AdminStatusSetter``: any known status may replace any other.  Staff
  can move a DELIVERED order back to PENDING.
- ``DeliveryTransitionValidator``: a courier may only take one step
  along ``CONFIRMED -> IN_ROUTE -> DELIVERED``, named by an action.

Neither machine touches ``paid_at``.
"""

from __future__ import annotations

from typing import Mapping, Tuple

import structlog

from modules.orders.constants import DELIVERY_TRANSITIONS, OrderStatus
from modules.orders.exceptions import (
    DeliveryTransitionNotAllowed,
    InvalidDeliveryAction,
    InvalidOrderStatus,
)

logger = structlog.get_logger(__name__)


class AdminStatusSetter:
    """Unconstrained status assignment for staff."""

    def validate(self, new_status: str) -> str:
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(
                f"Invalid status. Expected one of: {', '.join(OrderStatus.values)}."
            )
        return new_status

    def apply(self, order, new_status: str) -> str:
        """Set ``order.status`` and return the previous value."""
        new_status = self.validate(new_status)
        old_status = order.status
        order.status = new_status
        if old_status != new_status:
            logger.info(
                "order.status_set",
                order_id=str(order.id),
                old_status=old_status,
                new_status=new_status,
            )
        return old_status


class DeliveryTransitionValidator:
    """Strict adjacency table for courier self-service actions."""

    def __init__(
        self, transitions: Mapping[str, Tuple[str, str]] | None = None
    ) -> None:
        self._transitions = dict(
            transitions if transitions is not None else DELIVERY_TRANSITIONS
        )

    def next_status(self, current_status: str, action: str) -> str:
        """Status reached by performing *action* from *current_status*.

        Raises:
            InvalidDeliveryAction: unknown action.
            DeliveryTransitionNotAllowed: action not valid from the current status.
        """
        if action not in self._transitions:
            raise InvalidDeliveryAction(
                f"Invalid action. Use: {', '.join(self._transitions)}."
            )
        required, target = self._transitions[action]
        if current_status != required:
            raise DeliveryTransitionNotAllowed(
                f"Action '{action}' requires status {required} "
                f"(current: {current_status})."
            )
        return target

    def allowed_actions(self, current_status: str) -> list[str]:
        return [
            action
            for action, (required, _) in self._transitions.items()
            if required == current_status
        ]
