"""Address DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.addresses.models import Address


class CreateAddressSerializer(serializers.Serializer):
    """Validates the address creation request payload."""

    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    address_line1 = serializers.CharField(max_length=255)
    address_line2 = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100, required=False)
    is_default = serializers.BooleanField(required=False, default=False)


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "full_name",
            "phone",
            "address_line1",
            "address_line2",
            "city",
            "state",
            "postal_code",
            "country",
            "is_default",
            "created_at",
        ]
        read_only_fields = fields
