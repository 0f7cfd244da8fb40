"""Django ORM implementation of the delivery zone repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.zones.models import DeliveryZone
from modules.zones.repositories.interfaces import IDeliveryZoneRepository

logger = structlog.get_logger(__name__)


class DeliveryZoneDjangoRepository(IDeliveryZoneRepository):
    def get_by_id(self, id: str) -> Optional[DeliveryZone]:
        try:
            return DeliveryZone.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_active(self, id: str) -> Optional[DeliveryZone]:
        try:
            return DeliveryZone.objects.filter(id=id, active=True).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[DeliveryZone]:
        queryset = DeliveryZone.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_active(self) -> List[DeliveryZone]:
        return self.list({"active": True})

    @transaction.atomic
    def save(self, entity: DeliveryZone) -> DeliveryZone:
        entity.save()
        logger.info("delivery_zone.saved", zone_id=str(entity.id), city=entity.city)
        return entity
