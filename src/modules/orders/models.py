"""Order, OrderItem and BoletoInstallment models.

Rules carried by the models:
- ``total`` is always ``subtotal + delivery_fee``; ``apply_delivery_fee``
  recomputes it from the *stored* subtotal, never from the items.
- ``paid_at`` alone says whether an order is paid.  Status and payment
  are independent: a DELIVERED order may still be unpaid.
- Customer and address data are snapshots taken at checkout; the zone
  link is weak (SET_NULL) and never re-read after creation.
- OrderItem keeps a price snapshot and is never edited after creation.
- Installment numbers are unique per order.
- Orders are never hard-deleted (PROTECT on every inbound FK that
  matters to history).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import OrderStatus, PaymentMethod


class Order(BaseModel):
    """Order aggregate root."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.PIX,
    )
    paid_at = models.DateTimeField(null=True, blank=True)

    subtotal = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    delivery_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    total = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )

    customer_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=30)
    delivery_address = models.CharField(max_length=255)
    delivery_number = models.CharField(max_length=20)
    delivery_complement = models.CharField(max_length=255, blank=True, default="")
    delivery_neighborhood = models.CharField(max_length=120)
    delivery_city = models.CharField(max_length=120)
    delivery_state = models.CharField(max_length=2)
    delivery_zone = models.ForeignKey(
        "zones.DeliveryZone",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    delivery_date = models.DateTimeField(null=True, blank=True)
    delivery_person = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="delivery_orders",
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["paid_at"], name="orders_paid_at_idx"),
        ]

    # ------------------------------------------------------------------
    # Payment helpers
    # ------------------------------------------------------------------

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    @property
    def is_boleto(self) -> bool:
        return self.payment_method == PaymentMethod.BOLETO

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def apply_delivery_fee(self, fee: Decimal) -> None:
        """Set the delivery fee and recompute ``total`` from the stored subtotal."""
        self.delivery_fee = fee
        self.total = self.subtotal + fee

    @property
    def short_id(self) -> str:
        return str(self.id)[:8]

    def __str__(self) -> str:
        return f"#{self.short_id} ({self.status})"


class OrderItem(BaseModel):
    """Line item with a price snapshot taken at checkout.

    ``subtotal`` is always ``quantity * unit_price``, computed on save.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity}"


class BoletoInstallment(BaseModel):
    """One scheduled partial payment of a BOLETO order.

    ``due_date`` is a calendar date with no time component; it becomes a
    local-midnight instant only when the reminder classifier needs one.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="installments",
    )
    installment_number = models.PositiveIntegerField()
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    due_date = models.DateField()
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "boleto_installments"
        ordering = ["installment_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "installment_number"],
                name="boleto_installments_order_number_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="boleto_installments_amount_positive",
            ),
        ]
        indexes = [
            models.Index(
                fields=["paid_at", "due_date"], name="boleto_inst_unpaid_due_idx"
            ),
        ]

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    def __str__(self) -> str:
        return f"Parcela {self.installment_number} de {self.order}"
