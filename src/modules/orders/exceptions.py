"""Order domain exceptions.

Raised by the service layer when business rules are violated.  Each one
extends a base from ``modules.core.exceptions`` so the API exception
handler can map it to a status code without per-view ``try`` blocks.
"""

from __future__ import annotations

from modules.core.exceptions import (
    AuthorizationDenied,
    InvalidStateTransition,
    NotFound,
    ValidationFailed,
)


class OrderNotFound(NotFound):
    default_detail = "Order not found."


class InstallmentNotFound(NotFound):
    default_detail = "Installment not found."


class InvalidOrderStatus(ValidationFailed):
    """Status value outside the four known statuses."""


class InvalidPaymentMethod(ValidationFailed):
    """Payment method outside the five known methods."""


class EmptyOrderUpdate(ValidationFailed):
    default_detail = "No valid fields to update."


class EmptyInstallmentSchedule(ValidationFailed):
    default_detail = "At least one installment is required."


class InvalidDeliveryPerson(ValidationFailed):
    """Assignment target is missing or is not a DELIVERY user."""

    default_detail = "Invalid delivery person."


class InvalidDeliveryAction(ValidationFailed):
    default_detail = "Invalid action."


class OrderNotAssignable(InvalidStateTransition):
    """Assignment requested for an order that is not CONFIRMED."""

    default_detail = "Only confirmed orders can be assigned to a delivery person."


class OrderNotUnassignable(InvalidStateTransition):
    default_detail = (
        "Cannot remove the delivery person from an order in route or delivered."
    )


class DeliveryTransitionNotAllowed(InvalidStateTransition):
    """Courier action does not match the order's current status."""


class NotAssignedDeliveryPerson(AuthorizationDenied):
    default_detail = "This order is not assigned to you."
