"""Delivery zone repositories package."""

from modules.zones.repositories.django_repository import DeliveryZoneDjangoRepository
from modules.zones.repositories.interfaces import IDeliveryZoneRepository

__all__ = ["DeliveryZoneDjangoRepository", "IDeliveryZoneRepository"]
