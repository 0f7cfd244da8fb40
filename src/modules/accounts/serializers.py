"""Delivery roster serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import User
from modules.orders.serializers import OrderSerializer, UserSummarySerializer


class PromoteDeliveryPersonSerializer(serializers.Serializer):
    email = serializers.EmailField()


class DeliveryPersonSerializer(serializers.ModelSerializer):
    """Courier with the assignment counters annotated by the repository."""

    active_deliveries = serializers.IntegerField(read_only=True, default=0)
    total_deliveries = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "email",
            "role",
            "active_deliveries",
            "total_deliveries",
            "date_joined",
        ]
        read_only_fields = fields


class ItinerarySerializer(serializers.Serializer):
    delivery_person = UserSummarySerializer(read_only=True)
    confirmed = OrderSerializer(many=True, read_only=True)
    in_route = OrderSerializer(many=True, read_only=True)
    delivered = OrderSerializer(many=True, read_only=True)
