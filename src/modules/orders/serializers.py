"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.

Input serializers check shape only.  Quantity and pagination ranges are
left to the services so that violations surface with their domain
``kind`` (``invalid_quantity``, ``invalid_pagination``) and after the
activation gate.
"""

from __future__ import annotations

from typing import Dict
from uuid import UUID

from rest_framework import serializers

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class UUIDKeyedQuantityField(serializers.DictField):
    """``{"<uuid>": <int>, ...}`` with keys parsed into ``UUID``."""

    child = serializers.IntegerField()

    def to_internal_value(self, data) -> Dict[UUID, int]:
        values = super().to_internal_value(data)
        parsed: Dict[UUID, int] = {}
        for key, quantity in values.items():
            try:
                parsed[UUID(str(key))] = quantity
            except ValueError:
                raise serializers.ValidationError(
                    f"'{key}' is not a valid UUID."
                ) from None
        return parsed


class ProvisionSerializer(serializers.Serializer):
    """Validates an add-or-update request.

    Targets an existing order (``order_id``) or creates a new DRAFT order
    priced against ``price_book_id``.
    """

    order_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    price_book_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    product_id_to_quantity = UUIDKeyedQuantityField()

    def validate(self, attrs):
        if (attrs["order_id"] is None) == (attrs["price_book_id"] is None):
            raise serializers.ValidationError(
                "Provide exactly one of order_id or price_book_id."
            )
        return attrs


class UpdateQuantitiesSerializer(serializers.Serializer):
    order_item_quantities = UUIDKeyedQuantityField()


class DeleteItemsSerializer(serializers.Serializer):
    order_item_ids = serializers.ListField(child=serializers.UUIDField())


class OrderItemsQuerySerializer(serializers.Serializer):
    """Query parameters of the line-item listing."""

    offset = serializers.IntegerField(required=False, default=0)
    page_size = serializers.IntegerField(required=False, allow_null=True, default=None)
    cache_buster = serializers.IntegerField(required=False, allow_null=True, default=None)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.Serializer):
    """Read serializer for a listed line item."""

    id = serializers.UUIDField(read_only=True)
    order_id = serializers.UUIDField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(read_only=True)
    product_code = serializers.CharField(read_only=True)
    parent_product_name = serializers.CharField(read_only=True, allow_null=True)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    created_at = serializers.DateTimeField(read_only=True)


class OrderItemPageSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    offset = serializers.IntegerField(read_only=True)
    page_size = serializers.IntegerField(read_only=True)
    has_more = serializers.BooleanField(read_only=True)
    next_offset = serializers.IntegerField(read_only=True)
    total_amount = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)


class OrderSummarySerializer(serializers.Serializer):
    """Order header with totals (no nested items)."""

    id = serializers.UUIDField(read_only=True)
    order_number = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    price_book_id = serializers.UUIDField(read_only=True, allow_null=True)
    total_amount = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    activated_at = serializers.DateTimeField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class ProvisionResultSerializer(serializers.Serializer):
    affected = serializers.IntegerField(read_only=True)
    order = OrderSummarySerializer(read_only=True)


class ActivationStatusSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(read_only=True)
    status = serializers.CharField(read_only=True)
    is_activated = serializers.BooleanField(read_only=True)
    can_activate = serializers.BooleanField(read_only=True)
    reasons = serializers.ListField(child=serializers.CharField(), read_only=True)
