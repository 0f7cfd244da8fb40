"""Delivery zone repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.zones.models import DeliveryZone


class IDeliveryZoneRepository(IRepository["DeliveryZone"]):
    @abstractmethod
    def get_active(self, id: str) -> Optional[DeliveryZone]:
        """Retrieve a zone only if it is currently active."""

    @abstractmethod
    def list_active(self) -> List[DeliveryZone]:
        """Active zones ordered by state and city."""
