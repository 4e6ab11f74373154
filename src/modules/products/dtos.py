"""Catalog DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

The catalog is a tagged tree: ``CatalogParent`` nodes own
``CatalogChild`` nodes, distinguished by the ``kind`` discriminator.
Nodes are validated once, where the repository rows are turned into
DTOs, so consumers never have to re-check their shape.

- ``CatalogChild``: an orderable product with its list price and the
  quantity already on the order.
- ``CatalogParent``: a grouping product with at least one child.
- ``CatalogNode``: discriminated union of the two.
- ``ProductSearchDTO``: input for a catalog search.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ProductSearchDTO(BaseModel):
    """Catalog search request.

    ``parent_name`` is trimmed; a blank term is normalised to ``None``
    (no filtering).
    """

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    parent_name: Optional[str] = None

    @field_validator("parent_name")
    @classmethod
    def blank_term_means_no_filter(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class CatalogChild(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["child"] = "child"
    product_id: UUID
    parent_id: UUID
    name: str
    product_code: str
    description: str = ""
    list_price: Decimal
    quantity_in_order: int = 0

    @field_validator("list_price")
    @classmethod
    def list_price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("List price must be greater than zero.")
        return v

    @field_validator("quantity_in_order")
    @classmethod
    def quantity_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Quantity in order cannot be negative.")
        return v


class CatalogParent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["parent"] = "parent"
    product_id: UUID
    name: str
    product_code: str
    description: str = ""
    children: List[CatalogChild]

    @field_validator("children")
    @classmethod
    def children_must_not_be_empty(cls, v: List[CatalogChild]) -> List[CatalogChild]:
        if not v:
            raise ValueError("A catalog parent must carry at least one child.")
        return v


CatalogNode = Annotated[Union[CatalogParent, CatalogChild], Field(discriminator="kind")]

catalog_adapter: TypeAdapter[List[CatalogNode]] = TypeAdapter(List[CatalogNode])
