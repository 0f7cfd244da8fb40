"""Cash flow serializers.

Input serializers validate the wire format and parse dates at the
boundary; the service receives DTOs with aware datetimes only.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.cashflow.constants import EntryType
from modules.cashflow.models import CashFlowEntry
from modules.core.dates import parse_timestamp
from modules.orders.constants import PaymentMethod
from modules.orders.models import Order


class _PaymentDateMixin:
    def validate_payment_date(self, value: str):
        try:
            return parse_timestamp(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateEntrySerializer(_PaymentDateMixin, serializers.Serializer):
    type = serializers.ChoiceField(choices=EntryType.choices)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(max_length=255)
    payment_date = serializers.CharField()
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        required=False,
        allow_null=True,
        allow_blank=True,
    )


class UpdateEntrySerializer(_PaymentDateMixin, serializers.Serializer):
    type = serializers.ChoiceField(choices=EntryType.choices, required=False)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    description = serializers.CharField(max_length=255, required=False)
    payment_date = serializers.CharField(required=False)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        required=False,
        allow_null=True,
        allow_blank=True,
    )


# ---------------------------------------------------------------------------
# Output Serializers
# ---------------------------------------------------------------------------


class EntryOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ["id", "customer_name", "phone", "payment_method"]
        read_only_fields = fields


class CashFlowEntrySerializer(serializers.ModelSerializer):
    order = EntryOrderSerializer(read_only=True)

    class Meta:
        model = CashFlowEntry
        fields = [
            "id",
            "type",
            "amount",
            "description",
            "payment_method",
            "payment_date",
            "order",
            "installment_number",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CashFlowSummarySerializer(serializers.Serializer):
    total_income = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_expense = serializers.DecimalField(max_digits=14, decimal_places=2)
    balance = serializers.DecimalField(max_digits=14, decimal_places=2)
