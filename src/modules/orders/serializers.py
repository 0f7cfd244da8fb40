"""Order DRF serializers for API input/output.

Input serializers check the wire format and convert date strings at the
boundary (``LocalCalendarDate`` / local-midnight datetimes).  Business
rules live in the service layer, which receives Pydantic DTOs from
``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import User
from modules.core.dates import LocalCalendarDate, parse_optional_timestamp
from modules.orders.models import BoletoInstallment, Order, OrderItem


def _timestamp_or_error(value):
    try:
        return parse_optional_timestamp(value)
    except ValueError as exc:
        raise serializers.ValidationError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    """Customer checkout payload."""

    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    delivery_zone_id = serializers.UUIDField()
    customer_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=30)
    delivery_address = serializers.CharField(max_length=255)
    delivery_number = serializers.CharField(max_length=20)
    delivery_neighborhood = serializers.CharField(max_length=120)
    delivery_complement = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    payment_method = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateOrderSerializer(serializers.Serializer):
    """Staff patch.  Only keys present in the body reach ``validated_data``.

    ``status`` and ``payment_method`` are plain strings here: the service
    validates them after dropping the fields the actor may not change.
    """

    status = serializers.CharField(required=False)
    payment_method = serializers.CharField(required=False)
    delivery_fee = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False
    )
    delivery_date = serializers.CharField(
        required=False, allow_null=True, allow_blank=True
    )
    paid_at = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate_delivery_date(self, value):
        return _timestamp_or_error(value)

    def validate_paid_at(self, value):
        return _timestamp_or_error(value)


class AssignDeliverySerializer(serializers.Serializer):
    delivery_person_id = serializers.CharField(
        required=False, allow_null=True, allow_blank=True
    )


class InstallmentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    due_date = serializers.CharField()

    def validate_due_date(self, value: str) -> LocalCalendarDate:
        # Accept "2024-01-15" as well as "2024-01-15T00:00:00.000Z".
        try:
            return LocalCalendarDate.parse(value.split("T")[0])
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc


class ReplaceScheduleSerializer(serializers.Serializer):
    installments = InstallmentInputSerializer(many=True, allow_empty=True)


class InstallmentPaymentSerializer(serializers.Serializer):
    paid = serializers.BooleanField()
    payment_date = serializers.CharField(
        required=False, allow_null=True, allow_blank=True
    )

    def validate_payment_date(self, value):
        return _timestamp_or_error(value)


class DeliveryActionSerializer(serializers.Serializer):
    action = serializers.CharField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email"]
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    """Line item with its price snapshot."""

    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class InstallmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = BoletoInstallment
        fields = ["id", "installment_number", "amount", "due_date", "paid_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order with items, installments and the people involved."""

    user = UserSummarySerializer(read_only=True)
    delivery_person = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    installments = InstallmentSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "status",
            "payment_method",
            "paid_at",
            "subtotal",
            "delivery_fee",
            "total",
            "customer_name",
            "phone",
            "delivery_address",
            "delivery_number",
            "delivery_complement",
            "delivery_neighborhood",
            "delivery_city",
            "delivery_state",
            "delivery_zone_id",
            "delivery_date",
            "notes",
            "user",
            "delivery_person",
            "items",
            "installments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no items)."""

    delivery_person = UserSummarySerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "status",
            "payment_method",
            "paid_at",
            "total",
            "customer_name",
            "phone",
            "delivery_city",
            "delivery_person",
            "created_at",
        ]
        read_only_fields = fields


class ReminderOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ["id", "customer_name", "phone", "total"]
        read_only_fields = fields


class InstallmentReminderSerializer(serializers.ModelSerializer):
    order = ReminderOrderSerializer(read_only=True)

    class Meta:
        model = BoletoInstallment
        fields = [
            "id",
            "installment_number",
            "amount",
            "due_date",
            "paid_at",
            "order",
        ]
        read_only_fields = fields
