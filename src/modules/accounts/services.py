"""Delivery roster service.

Promotes customers to couriers and back.  Demotion is refused while the
courier still holds orders that are CONFIRMED or IN_ROUTE: those must be
reassigned or completed first, otherwise the order would keep a
delivery person who can no longer reach the self-service surface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db import transaction

from modules.accounts.constants import Role
from modules.accounts.exceptions import (
    DeliveryPersonHasActiveOrders,
    InvalidRoleChange,
    UserNotFound,
)
from modules.core.exceptions import ValidationFailed

if TYPE_CHECKING:
    from modules.accounts.models import User
    from modules.accounts.permissions import PermissionResolver
    from modules.accounts.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class DeliveryRosterService:
    def __init__(
        self,
        user_repository: IUserRepository,
        permission_resolver: PermissionResolver,
    ) -> None:
        self._user_repo = user_repository
        self._permissions = permission_resolver

    def list_delivery_persons(self, actor_role: str) -> List[User]:
        self._permissions.require(actor_role, "can_view_delivery_persons")
        return self._user_repo.list_delivery_persons()

    @transaction.atomic
    def promote(self, actor_role: str, email: str) -> User:
        """Turn the customer registered under *email* into a courier.

        Raises:
            AuthorizationDenied: actor cannot manage delivery persons.
            ValidationFailed: email missing.
            UserNotFound: no user with that email.
            InvalidRoleChange: user is not a plain customer.
        """
        self._permissions.require(actor_role, "can_manage_delivery_persons")
        if not email or not email.strip():
            raise ValidationFailed("Email is required.")

        user = self._user_repo.get_by_email(email)
        if not user:
            raise UserNotFound()
        if user.role == Role.DELIVERY:
            raise InvalidRoleChange("This user is already a delivery person.")
        if user.role != Role.USER:
            raise InvalidRoleChange(
                f"Only customers can become delivery persons (current role: {user.role})."
            )

        user.role = Role.DELIVERY
        self._user_repo.save(user)
        logger.info("delivery_person.promoted", user_id=str(user.id))
        return user

    @transaction.atomic
    def demote(self, actor_role: str, user_id: str) -> User:
        """Turn a courier back into a customer.

        Raises:
            AuthorizationDenied: actor cannot manage delivery persons.
            UserNotFound: unknown user.
            InvalidRoleChange: user is not a courier.
            DeliveryPersonHasActiveOrders: courier still holds active orders.
        """
        self._permissions.require(actor_role, "can_manage_delivery_persons")

        user = self._user_repo.get_for_update(user_id)
        if not user:
            raise UserNotFound()
        if user.role != Role.DELIVERY:
            raise InvalidRoleChange("This user is not a delivery person.")

        active = self._user_repo.count_active_assignments(str(user.id))
        if active > 0:
            logger.warning(
                "delivery_person.demotion_blocked",
                user_id=str(user.id),
                active_deliveries=active,
            )
            raise DeliveryPersonHasActiveOrders(
                f"Cannot remove: this delivery person has {active} "
                f"delivery(ies) in progress."
            )

        user.role = Role.USER
        self._user_repo.save(user)
        logger.info("delivery_person.demoted", user_id=str(user.id))
        return user
