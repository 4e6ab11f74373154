"""Order repository interface.

Extends ``IRepository[Order]`` with the line-item operations the Order
aggregate needs: locked reads for gating, keyed look-ups for batch
mutations, paginated listing and status history.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem, OrderStatusHistory
    from modules.products.models import PriceBook, PriceBookEntry


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must run inside the caller's
    transaction.
    """

    # -- Orders ---------------------------------------------------------

    @abstractmethod
    def create(self, price_book: PriceBook) -> Order:
        """Create a DRAFT order priced against *price_book*."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row-level lock until commit."""

    @abstractmethod
    def lock_many(self, ids: Iterable[UUID]) -> List[Order]:
        """Lock several orders, always in primary-key order."""

    @abstractmethod
    def recalculate_total(self, order: Order) -> Decimal:
        """Recompute and persist ``total_amount`` from the current items."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    # -- Items ----------------------------------------------------------

    @abstractmethod
    def get_items_by_ids(self, item_ids: Iterable[UUID]) -> Dict[UUID, OrderItem]:
        """Map item id to item; unknown ids are absent."""

    @abstractmethod
    def get_items_for_products(
        self, order_id: UUID, product_ids: Iterable[UUID]
    ) -> Dict[UUID, OrderItem]:
        """Map product id to the order's existing line item for it."""

    @abstractmethod
    def create_item(
        self, order: Order, entry: PriceBookEntry, quantity: int
    ) -> OrderItem:
        """Create a line item priced from *entry*."""

    @abstractmethod
    def save_item(self, item: OrderItem) -> OrderItem:
        """Persist a changed quantity (total is recomputed on save)."""

    @abstractmethod
    def delete_items(self, item_ids: Iterable[UUID]) -> int:
        """Delete items; returns how many rows were removed."""

    @abstractmethod
    def list_items(self, order_id: UUID, offset: int, limit: int) -> List[OrderItem]:
        """Items ordered by (created_at, id), sliced ``[offset:offset+limit]``."""

    @abstractmethod
    def count_items(self, order_id: UUID) -> int:
        """Number of line items on the order."""

    @abstractmethod
    def quantities_by_product(self, order_id: UUID) -> Dict[UUID, int]:
        """Map product id to its current quantity on the order."""

    @abstractmethod
    def item_product_ids(self, order_id: UUID) -> List[UUID]:
        """Product ids of all line items on the order."""
