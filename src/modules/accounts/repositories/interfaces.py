"""User repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import User


class IUserRepository(IRepository["User"]):
    """Repository contract for users as seen by the delivery roster."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email address (case-insensitive)."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[User]:
        """Retrieve a user with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def list_delivery_persons(self) -> List[User]:
        """Couriers annotated with ``active_deliveries``."""

    @abstractmethod
    def count_active_assignments(self, user_id: str) -> int:
        """Number of CONFIRMED/IN_ROUTE orders assigned to the user."""
