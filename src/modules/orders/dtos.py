"""Order DTOs for the service layer.

Framework-agnostic data transfer objects using Pydantic v2, immutable
(``frozen=True``).  Dates arrive already converted to aware datetimes or
``LocalCalendarDate`` values; raw date strings never reach a service.

- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: customer checkout.
- ``UpdateOrderDTO``: staff patch.  Presence is tracked through
  ``model_fields_set`` so ``paid_at=None`` (clear) differs from an
  omitted ``paid_at`` (leave alone).
- ``InstallmentInputDTO``: one row of a replacement schedule.
- ``InstallmentPaymentDTO``: pay/unpay toggle.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.core.dates import LocalCalendarDate
from modules.orders.constants import DEFAULT_PAYMENT_METHOD, PaymentMethod

# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Single cart line.  ``unit_price`` is resolved from the catalog."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    delivery_zone_id: UUID
    customer_name: str
    phone: str
    delivery_address: str
    delivery_number: str
    delivery_neighborhood: str
    delivery_complement: str = ""
    payment_method: str = DEFAULT_PAYMENT_METHOD
    notes: str = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator(
        "customer_name",
        "phone",
        "delivery_address",
        "delivery_number",
        "delivery_neighborhood",
    )
    @classmethod
    def contact_fields_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Delivery and contact details are required.")
        return v.strip()

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_payment_method(cls, v: Optional[str]) -> str:
        """Unknown or missing methods fall back to PIX."""
        return v if v in PaymentMethod.values else DEFAULT_PAYMENT_METHOD

    @model_validator(mode="after")
    def no_duplicate_products(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


# ---------------------------------------------------------------------------
# Staff patch
# ---------------------------------------------------------------------------


class UpdateOrderDTO(BaseModel):
    """Partial update; only fields in ``model_fields_set`` are applied.

    ``status`` and ``payment_method`` are validated by the service so
    that fields dropped for the actor's role are never rejected.
    """

    model_config = ConfigDict(frozen=True)

    status: Optional[str] = None
    payment_method: Optional[str] = None
    delivery_fee: Optional[Decimal] = None
    delivery_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None

    def present(self) -> frozenset[str]:
        return frozenset(self.model_fields_set)

    def without(self, *names: str) -> UpdateOrderDTO:
        """Copy of this patch with *names* removed from the present set."""
        kept = {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in names
        }
        return UpdateOrderDTO(**kept)


# ---------------------------------------------------------------------------
# Installments
# ---------------------------------------------------------------------------


class InstallmentInputDTO(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    amount: Decimal
    due_date: LocalCalendarDate

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError("Installment amount must be greater than zero.")
        return v


class InstallmentPaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    paid: bool
    payment_date: Optional[datetime] = None
