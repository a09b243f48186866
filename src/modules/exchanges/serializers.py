"""Exchange DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.addresses.serializers import AddressSerializer
from modules.exchanges.constants import DeliveryStatus
from modules.exchanges.models import Exchange, ExchangeItem, TimelineEntry

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ExchangeItemInputSerializer(serializers.Serializer):
    product_id = serializers.CharField(max_length=64)
    product_name = serializers.CharField(max_length=255)
    product_image_url = serializers.URLField(
        max_length=500, required=False, default="", allow_blank=True
    )
    sku = serializers.CharField(
        max_length=100, required=False, default="", allow_blank=True
    )
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0
    )
    total_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    variation_details = serializers.JSONField(required=False, default=dict)


class CreateExchangeSerializer(serializers.Serializer):
    """Validates the exchange creation request payload."""

    receiver_id = serializers.CharField(max_length=255)
    initiator_address_id = serializers.UUIDField()
    initiator_items = ExchangeItemInputSerializer(many=True, allow_empty=False)
    receiver_items = ExchangeItemInputSerializer(many=True, allow_empty=False)
    initiator_notes = serializers.CharField(
        required=False, default="", allow_blank=True
    )
    price_difference = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )


class ApproveExchangeSerializer(serializers.Serializer):
    receiver_address_id = serializers.UUIDField()
    receiver_notes = serializers.CharField(
        required=False, default="", allow_blank=True
    )


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateDeliverySerializer(serializers.Serializer):
    delivery_status = serializers.ChoiceField(choices=DeliveryStatus.choices)
    tracking_number = serializers.CharField(
        max_length=100, required=False, allow_blank=True, allow_null=True
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class ExchangeItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExchangeItem
        fields = [
            "id",
            "side",
            "product_id",
            "product_name",
            "product_image_url",
            "sku",
            "variation_details",
            "quantity",
            "unit_price",
            "total_price",
            "is_locked",
            "locked_at",
            "released_at",
        ]
        read_only_fields = fields


class TimelineEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = TimelineEntry
        fields = [
            "id",
            "action",
            "description",
            "actor_id",
            "actor_name",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


_EXCHANGE_FIELDS = [
    "id",
    "exchange_code",
    "initiator_id",
    "receiver_id",
    "status",
    "payment_method",
    "payment_status",
    "price_difference",
    "initiator_address_id",
    "receiver_address_id",
    "initiator_notes",
    "receiver_notes",
    "cancellation_reason",
    "initiator_delivery_status",
    "receiver_delivery_status",
    "initiator_tracking_number",
    "receiver_tracking_number",
    "approved_at",
    "shipped_at",
    "delivered_at",
    "completed_at",
    "cancelled_at",
    "created_at",
    "updated_at",
]


class ExchangeSerializer(serializers.ModelSerializer):
    """Read serializer for the full exchange aggregate.

    ``addresses`` lists only the addresses that are set (the receiver's
    is unknown until approval).
    """

    items = ExchangeItemSerializer(many=True, read_only=True)
    timeline = TimelineEntrySerializer(many=True, read_only=True)
    addresses = serializers.SerializerMethodField()

    class Meta:
        model = Exchange
        fields = _EXCHANGE_FIELDS + ["items", "timeline", "addresses"]
        read_only_fields = fields

    def get_addresses(self, obj: Exchange) -> list:
        addresses = [
            address
            for address in (obj.initiator_address, obj.receiver_address)
            if address is not None
        ]
        return AddressSerializer(addresses, many=True).data


class ExchangeListSerializer(serializers.ModelSerializer):
    """List serializer: exchange fields plus items, no timeline."""

    items = ExchangeItemSerializer(many=True, read_only=True)

    class Meta:
        model = Exchange
        fields = _EXCHANGE_FIELDS + ["items"]
        read_only_fields = fields
