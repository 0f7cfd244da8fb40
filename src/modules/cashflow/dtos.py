"""Cash flow DTOs for the service layer.

Pydantic v2, immutable.  ``UpdateEntryDTO`` relies on
``model_fields_set`` to tell "field omitted" from "field sent as null",
which matters for ``payment_method`` (null clears it).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.cashflow.constants import EntryType
from modules.orders.constants import PaymentMethod


def _check_type(value: str) -> str:
    if value not in EntryType.values:
        raise ValueError("Invalid type. Use INCOME or EXPENSE.")
    return value


def _check_amount(value: Decimal) -> Decimal:
    if not value.is_finite() or value == 0:
        raise ValueError("Amount must be a non-zero number.")
    return value


def _check_payment_method(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    if value not in PaymentMethod.values:
        raise ValueError("Invalid payment method.")
    return value


class CreateEntryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    amount: Decimal
    description: str
    payment_date: datetime
    payment_method: Optional[str] = None

    @field_validator("type")
    @classmethod
    def type_valid(cls, v: str) -> str:
        return _check_type(v)

    @field_validator("amount")
    @classmethod
    def amount_valid(cls, v: Decimal) -> Decimal:
        return _check_amount(v)

    @field_validator("payment_method")
    @classmethod
    def payment_method_valid(cls, v: Optional[str]) -> Optional[str]:
        return _check_payment_method(v)

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description is required.")
        return v.strip()


class UpdateEntryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Optional[str] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None

    @field_validator("type")
    @classmethod
    def type_valid(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_type(v)

    @field_validator("amount")
    @classmethod
    def amount_valid(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return None if v is None else _check_amount(v)

    @field_validator("payment_method")
    @classmethod
    def payment_method_valid(cls, v: Optional[str]) -> Optional[str]:
        return _check_payment_method(v)

    def changes(self) -> dict:
        """Only the fields the client actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class CashFlowSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
