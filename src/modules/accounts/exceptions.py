"""Account domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import InvalidStateTransition, NotFound, ValidationFailed


class UserNotFound(NotFound):
    default_detail = "User not found."


class InvalidRoleChange(ValidationFailed):
    """Promotion/demotion requested for a user in the wrong role."""


class DeliveryPersonHasActiveOrders(InvalidStateTransition):
    """A courier still holds CONFIRMED or IN_ROUTE orders."""
