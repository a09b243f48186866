"""Seller DRF serializers (read only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.sellers.models import SellerRegistration


class RetailerSerializer(serializers.ModelSerializer):
    """Public view of an approved retailer."""

    registration_id = serializers.UUIDField(source="id", read_only=True)

    class Meta:
        model = SellerRegistration
        fields = [
            "registration_id",
            "user_id",
            "shop_name",
            "display_name",
        ]
        read_only_fields = fields
