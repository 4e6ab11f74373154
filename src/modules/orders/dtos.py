"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers), the
orchestration layer and the Service layer.  DTOs are immutable
(``frozen=True``).

Quantities are only type-checked here; the ``>= 1`` rule is enforced by
``OrderItemService`` so that a bad value surfaces as ``InvalidQuantity``
for the whole batch.

- ``AddOrUpdateQuantitiesDTO``: product id -> quantity for one order.
- ``ProvisionOrderDTO``: the same, for an existing or a new order.
- ``UpdateQuantitiesDTO``: order item id -> quantity.
- ``DeleteItemsDTO``: order item ids to delete.
- ``OrderItemOutputDTO``: one listed line item.
- ``OrderItemPageDTO``: one page of line items.
- ``OrderSummaryDTO``: order header with totals.
- ``ActivationStatusDTO``: status plus activation eligibility.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class AddOrUpdateQuantitiesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    product_id_to_quantity: Dict[UUID, int]


class ProvisionOrderDTO(BaseModel):
    """Add-or-update request that may also create the order.

    Exactly one of ``order_id`` / ``price_book_id`` is given; the latter
    creates a new DRAFT order priced against that book.
    """

    model_config = ConfigDict(frozen=True)

    order_id: Optional[UUID] = None
    price_book_id: Optional[UUID] = None
    product_id_to_quantity: Dict[UUID, int]

    @model_validator(mode="after")
    def exactly_one_order_reference(self) -> ProvisionOrderDTO:
        if (self.order_id is None) == (self.price_book_id is None):
            raise ValueError("Provide exactly one of order_id or price_book_id.")
        return self


class UpdateQuantitiesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_item_id_to_quantity: Dict[UUID, int]


class DeleteItemsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_item_ids: List[UUID]


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    """Immutable DTO for a listed order line item.

    ``product_name`` and ``parent_product_name`` are denormalised from
    the catalog for display.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_id: UUID
    product_id: UUID
    product_name: str
    product_code: str
    parent_product_name: Optional[str]
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    created_at: datetime

    @classmethod
    def from_entity(cls, item: OrderItem) -> OrderItemOutputDTO:
        """Assumes ``product`` and ``product.parent`` are select-related."""
        product = item.product
        parent = product.parent
        return cls(
            id=item.id,
            order_id=item.order_id,
            product_id=item.product_id,
            product_name=product.name,
            product_code=product.product_code,
            parent_product_name=parent.name if parent else None,
            unit_price=item.unit_price,
            quantity=item.quantity,
            total_price=item.total_price,
            created_at=item.created_at,
        )


class OrderItemPageDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    items: List[OrderItemOutputDTO]
    offset: int
    page_size: int
    has_more: bool
    next_offset: int
    total_amount: Decimal


class OrderSummaryDTO(BaseModel):
    """Immutable DTO for the order header."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    status: str
    price_book_id: Optional[UUID]
    total_amount: Decimal
    item_count: int
    activated_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: Order, item_count: int) -> OrderSummaryDTO:
        return cls(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            price_book_id=order.price_book_id,
            total_amount=order.total_amount,
            item_count=item_count,
            activated_at=order.activated_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class ActivationStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    status: str
    is_activated: bool
    can_activate: bool
    reasons: List[str] = []
