"""Catalog repository interface.

Extends ``IRepository[Product]`` with the price-book look-ups the
catalog, mutation and activation services need.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import PriceBook, PriceBookEntry, Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product catalog."""

    @abstractmethod
    def list_priced_children(
        self, price_book_id: UUID, parent_name: Optional[str] = None
    ) -> List[PriceBookEntry]:
        """Return active entries for child products in *price_book_id*.

        Each entry has ``product`` and ``product.parent`` loaded.  Results
        are ordered by parent name, parent id, child name, child id.  When
        *parent_name* is given only children whose parent name contains it
        (case-insensitive) are returned.
        """

    @abstractmethod
    def get_active_entries(
        self, price_book_id: UUID, product_ids: Iterable[UUID]
    ) -> Dict[UUID, PriceBookEntry]:
        """Map product id to its orderable entry in *price_book_id*.

        Uses the same rule as ``list_priced_children``: an active entry for
        a child product whose parent is active and not deleted.  Products
        without such an entry are absent from the result.
        """

    @abstractmethod
    def get_active_price_book(self, price_book_id: UUID) -> Optional[PriceBook]:
        """Return the price book if it exists and is active, else ``None``."""
