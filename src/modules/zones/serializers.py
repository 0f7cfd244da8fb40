"""Delivery zone read serializer."""

from __future__ import annotations

from rest_framework import serializers

from modules.zones.models import DeliveryZone


class DeliveryZoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryZone
        fields = ["id", "city", "state", "delivery_fee"]
        read_only_fields = fields
