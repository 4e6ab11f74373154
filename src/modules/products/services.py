"""Catalog service layer (Use Cases).

Resolves the priced product hierarchy an order can draw from.  Read-only:
nothing here opens a write transaction.

Rules enforced:
- Only child products with an active entry in the order's price book
  are offered; parents left without children are omitted.
- Each child carries ``quantity_in_order`` (0 when not on the order yet).
- A blank search term means no filtering; otherwise parent names are
  matched by case-insensitive substring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping
from uuid import UUID

import structlog

from modules.orders.exceptions import OrderNotFound
from modules.products.dtos import CatalogParent, catalog_adapter

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.dtos import ProductSearchDTO
    from modules.products.models import PriceBookEntry
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CatalogService:
    """Application service for catalog queries.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        product_repository: IProductRepository,
        order_repository: IOrderRepository,
    ) -> None:
        self._product_repo = product_repository
        self._order_repo = order_repository

    def list_available_products(self, dto: ProductSearchDTO) -> List[CatalogParent]:
        """Return ``[CatalogParent(children=[...]), ...]`` for the order.

        Raises:
            OrderNotFound: the order does not exist.
        """
        log = logger.bind(order_id=str(dto.order_id), parent_name=dto.parent_name)

        order = self._order_repo.get_by_id(str(dto.order_id))
        if not order:
            raise OrderNotFound(f"Order {dto.order_id} not found.")

        if order.price_book_id is None:
            log.warning("catalog.order_without_price_book")
            return []

        entries = self._product_repo.list_priced_children(
            order.price_book_id, dto.parent_name
        )
        quantities = self._order_repo.quantities_by_product(order.id)
        catalog = build_catalog(entries, quantities)

        log.info(
            "catalog.listed",
            parent_count=len(catalog),
            child_count=sum(len(parent.children) for parent in catalog),
        )
        return catalog


def build_catalog(
    entries: List[PriceBookEntry], quantities: Mapping[UUID, int]
) -> List[CatalogParent]:
    """Group ordered price-book entries under their parent products.

    *entries* must already be ordered so that children of the same parent
    are contiguous.
    """
    raw: List[Dict[str, Any]] = []
    current: Dict[str, Any] | None = None

    for entry in entries:
        child = entry.product
        parent = child.parent
        if current is None or current["product_id"] != parent.id:
            current = {
                "kind": "parent",
                "product_id": parent.id,
                "name": parent.name,
                "product_code": parent.product_code,
                "description": parent.description,
                "children": [],
            }
            raw.append(current)
        current["children"].append(
            {
                "kind": "child",
                "product_id": child.id,
                "parent_id": parent.id,
                "name": child.name,
                "product_code": child.product_code,
                "description": child.description,
                "list_price": entry.unit_price,
                "quantity_in_order": quantities.get(child.id, 0),
            }
        )

    return list(catalog_adapter.validate_python(raw))
