"""Delivery zone: the city whose fee is snapshotted onto new orders."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class DeliveryZone(BaseModel):
    """City/state to delivery fee mapping.

    Consulted only at checkout.  Changing ``delivery_fee`` never touches
    existing orders, which keep the value they were created with.
    """

    city = models.CharField(max_length=120)
    state = models.CharField(max_length=2)
    delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    active = models.BooleanField(default=True)

    class Meta:
        db_table = "delivery_zones"
        ordering = ["state", "city"]
        constraints = [
            models.UniqueConstraint(
                fields=["city", "state"], name="delivery_zones_city_state_uniq"
            ),
            models.CheckConstraint(
                condition=models.Q(delivery_fee__gte=0),
                name="delivery_zones_fee_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.city}/{self.state}"
