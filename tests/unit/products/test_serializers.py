"""Unit tests for catalog DRF serializers.

Covers:
- Search request validation.
- Rendering of the parent/child catalog tree.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.products.dtos import CatalogChild, CatalogParent
from modules.products.serializers import CatalogParentSerializer, ProductSearchSerializer

pytestmark = pytest.mark.unit


class TestProductSearchSerializer:
    def test_order_id_is_required(self):
        serializer = ProductSearchSerializer(data={})
        assert not serializer.is_valid()
        assert "order_id" in serializer.errors

    def test_parent_name_is_optional(self):
        order_id = uuid4()
        serializer = ProductSearchSerializer(data={"order_id": str(order_id)})
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data == {"order_id": order_id, "parent_name": None}

    @pytest.mark.parametrize("term", ["", None])
    def test_blank_or_null_term_is_accepted(self, term):
        serializer = ProductSearchSerializer(
            data={"order_id": str(uuid4()), "parent_name": term}
        )
        assert serializer.is_valid(), serializer.errors

    def test_rejects_malformed_order_id(self):
        serializer = ProductSearchSerializer(data={"order_id": "42"})
        assert not serializer.is_valid()


class TestCatalogParentSerializer:
    def test_renders_tree(self):
        parent_id, child_id = uuid4(), uuid4()
        node = CatalogParent(
            product_id=parent_id,
            name="Laptops",
            product_code="LAP",
            children=[
                CatalogChild(
                    product_id=child_id,
                    parent_id=parent_id,
                    name="Laptop Basic",
                    product_code="LAP-BASIC",
                    list_price=Decimal("10"),
                    quantity_in_order=2,
                )
            ],
        )

        data = CatalogParentSerializer(node.model_dump()).data

        assert data["kind"] == "parent"
        assert data["product_id"] == str(parent_id)
        [child] = data["children"]
        assert child["kind"] == "child"
        assert child["parent_id"] == str(parent_id)
        assert child["list_price"] == "10.00"
        assert child["quantity_in_order"] == 2
