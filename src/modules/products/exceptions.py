"""Catalog domain exceptions.

Raised by the catalog service and the selection model.  The REST edge
translates them through ``modules.core.exceptions.DomainExceptionHandler``.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from modules.core.exceptions import Conflict, NotFound


class ProductNotFound(NotFound):
    """A product is absent, retired, or has no active price-book entry."""

    default_detail = "Product not found."


class SelectionConflict(Conflict):
    """Two selected child products share the same parent."""

    kind = "selection_conflict"
    default_detail = (
        "You can select only one child product per parent. "
        "Please deselect one of the products from the same parent."
    )

    def __init__(
        self,
        detail: Optional[str] = None,
        parent_id: Optional[UUID] = None,
        product_ids: tuple[UUID, ...] = (),
    ) -> None:
        super().__init__(detail)
        self.parent_id = parent_id
        self.product_ids = product_ids


class PriceBookNotFound(NotFound):
    """The price book is absent or inactive."""

    default_detail = "Price book not found."
