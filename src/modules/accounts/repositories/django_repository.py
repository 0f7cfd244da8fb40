"""Django ORM implementation of the User repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q

from modules.accounts.constants import Role
from modules.accounts.models import User
from modules.accounts.repositories.interfaces import IUserRepository
from modules.orders.constants import ACTIVE_DELIVERY_STATUSES

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    """Concrete User repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[User]:
        try:
            return User.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[User]:
        try:
            return User.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_email(self, email: str) -> Optional[User]:
        return User.objects.filter(email__iexact=email.strip()).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[User]:
        queryset = User.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_delivery_persons(self) -> List[User]:
        queryset = (
            User.objects.filter(role=Role.DELIVERY)
            .annotate(
                active_deliveries=Count(
                    "delivery_orders",
                    filter=Q(delivery_orders__status__in=ACTIVE_DELIVERY_STATUSES),
                ),
                total_deliveries=Count("delivery_orders"),
            )
            .order_by("name", "username")
        )
        return list(queryset)

    def count_active_assignments(self, user_id: str) -> int:
        from modules.orders.models import Order

        return Order.objects.filter(
            delivery_person_id=user_id,
            status__in=ACTIVE_DELIVERY_STATUSES,
        ).count()

    @transaction.atomic
    def save(self, entity: User) -> User:
        entity.save()
        logger.info("user.saved", user_id=str(entity.id), role=entity.role)
        return entity
