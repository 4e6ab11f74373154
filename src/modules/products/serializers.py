"""Catalog DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``; output serializers render the
``model_dump()`` of those DTOs.
"""

from __future__ import annotations

from rest_framework import serializers

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ProductSearchSerializer(serializers.Serializer):
    """Validates a catalog search request."""

    order_id = serializers.UUIDField()
    parent_name = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        default=None,
        max_length=255,
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class CatalogChildSerializer(serializers.Serializer):
    kind = serializers.CharField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    parent_id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    product_code = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    list_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    quantity_in_order = serializers.IntegerField(read_only=True)


class CatalogParentSerializer(serializers.Serializer):
    """A parent product with its priced, orderable children."""

    kind = serializers.CharField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    product_code = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    children = CatalogChildSerializer(many=True, read_only=True)
