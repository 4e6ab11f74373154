"""Order item service layer (Use Cases).

Orchestrates line-item mutation and listing for an order.  All write
operations are atomic: the service defines the unit-of-work boundary and
any raise rolls the whole batch back.

Business rules enforced:
- Every mutation first locks the order through the activation state
  machine and fails with ``OrderActivated`` unless the order is DRAFT.
- Quantities must lie in ``1..MAX_QUANTITY`` and every line total must
  fit ``MAX_LINE_TOTAL`` (``InvalidQuantity``, whole batch).
- Adding a product already on the order sets its quantity instead of
  creating a second row.
- New line items take ``unit_price`` from the active price-book entry;
  a product without one fails the batch with ``ProductNotFound``.
- Deleting unknown item ids is a no-op and is not counted.
- ``total_price`` of every touched item and the order's
  ``total_amount`` are recomputed in the same transaction.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction

from modules.orders.constants import MAX_LINE_TOTAL, MAX_QUANTITY
from modules.orders.dtos import (
    AddOrUpdateQuantitiesDTO,
    OrderItemOutputDTO,
    OrderItemPageDTO,
    OrderSummaryDTO,
)
from modules.orders.events import OrderItemsChanged
from modules.orders.exceptions import (
    InvalidPagination,
    InvalidQuantity,
    OrderItemNotFound,
    OrderNotFound,
    ProductNotFound,
)
from modules.products.exceptions import PriceBookNotFound

if TYPE_CHECKING:
    from modules.orders.activation import ActivationStateMachine
    from modules.orders.dtos import (
        DeleteItemsDTO,
        ProvisionOrderDTO,
        UpdateQuantitiesDTO,
    )
    from modules.orders.models import Order, OrderItem
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


def _validate_quantities(quantities: Mapping[UUID, int]) -> None:
    invalid = {
        str(key): qty
        for key, qty in quantities.items()
        if not 1 <= qty <= MAX_QUANTITY
    }
    if invalid:
        raise InvalidQuantity(
            f"Quantity must be between 1 and {MAX_QUANTITY} (got {invalid})."
        )


def _validate_line_totals(lines: Iterable[Tuple[UUID, int, Decimal]]) -> None:
    """Reject quantities whose line total would not fit ``total_price``."""
    too_large = [
        str(key) for key, qty, unit_price in lines if qty * unit_price > MAX_LINE_TOTAL
    ]
    if too_large:
        raise InvalidQuantity(
            f"Line total may not exceed {MAX_LINE_TOTAL} (items: {', '.join(too_large)})."
        )


class OrderItemService:
    """Application service for line-item mutations.

    Receives repositories and the activation state machine via
    constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        activation: ActivationStateMachine,
        event_bus: IEventBus,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._activation = activation
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_or_update_quantities(self, dto: AddOrUpdateQuantitiesDTO) -> int:
        """Create or re-quantify one line item per product.

        Returns the number of affected line items.

        Raises:
            OrderNotFound: order does not exist.
            OrderActivated: order is not DRAFT.
            InvalidQuantity: a quantity or line total is out of range.
            ProductNotFound: a new product has no active price-book entry.
        """
        log = logger.bind(order_id=str(dto.order_id))
        order = self._activation.lock_mutable_order(dto.order_id)

        requested = dict(dto.product_id_to_quantity)
        _validate_quantities(requested)
        if not requested:
            return 0

        existing = self._order_repo.get_items_for_products(order.id, requested)
        new_ids = [pid for pid in requested if pid not in existing]
        entries = {}
        if new_ids and order.price_book_id is not None:
            entries = self._product_repo.get_active_entries(order.price_book_id, new_ids)
        unpriced = [pid for pid in new_ids if pid not in entries]
        if unpriced:
            log.warning(
                "order_items.unpriced_products",
                product_ids=[str(pid) for pid in unpriced],
            )
            raise ProductNotFound(
                "No active price book entry for product(s): "
                + ", ".join(str(pid) for pid in unpriced)
            )
        _validate_line_totals(
            (
                pid,
                qty,
                existing[pid].unit_price if pid in existing else entries[pid].unit_price,
            )
            for pid, qty in requested.items()
        )

        created = updated = 0
        for product_id, quantity in requested.items():
            item = existing.get(product_id)
            if item is None:
                self._order_repo.create_item(order, entries[product_id], quantity)
                created += 1
            else:
                item.quantity = quantity
                self._order_repo.save_item(item)
                updated += 1

        affected = created + updated
        self._finish(order, affected)
        log.info("order_items.added", created=created, updated=updated)
        return affected

    @transaction.atomic
    def provision(self, dto: ProvisionOrderDTO) -> Tuple[UUID, int]:
        """Resolve or create the order, then add or update its items.

        Returns ``(order_id, affected)``.  Creating the order and adding
        the items commit together.

        Raises:
            PriceBookNotFound: *price_book_id* is unknown or inactive.
            Anything ``add_or_update_quantities`` raises.
        """
        order_id = dto.order_id
        if order_id is None:
            price_book = self._product_repo.get_active_price_book(dto.price_book_id)
            if price_book is None:
                raise PriceBookNotFound(f"Price book {dto.price_book_id} not found.")
            order_id = self._order_repo.create(price_book).id

        affected = self.add_or_update_quantities(
            AddOrUpdateQuantitiesDTO(
                order_id=order_id,
                product_id_to_quantity=dto.product_id_to_quantity,
            )
        )
        return order_id, affected

    @transaction.atomic
    def update_quantities(self, dto: UpdateQuantitiesDTO) -> int:
        """Set the quantity of existing line items.

        Raises:
            OrderItemNotFound: an item id does not exist.
            OrderActivated: an owning order is not DRAFT.
            InvalidQuantity: a quantity or line total is out of range.
        """
        requested = dict(dto.order_item_id_to_quantity)
        if not requested:
            return 0

        orders, items = self._lock_items(requested)
        missing = [iid for iid in requested if iid not in items]
        if missing:
            raise OrderItemNotFound(
                "Order item(s) not found: " + ", ".join(str(i) for i in missing)
            )
        _validate_quantities(requested)
        _validate_line_totals(
            (iid, qty, items[iid].unit_price) for iid, qty in requested.items()
        )

        for item_id, quantity in requested.items():
            item = items[item_id]
            item.quantity = quantity
            self._order_repo.save_item(item)

        self._finish_many(orders, items.values())
        logger.info("order_items.quantities_updated", count=len(requested))
        return len(requested)

    @transaction.atomic
    def delete_items(self, dto: DeleteItemsDTO) -> int:
        """Delete line items; unknown ids are skipped and not counted.

        Raises:
            OrderActivated: an owning order is not DRAFT.
        """
        requested = list(dict.fromkeys(dto.order_item_ids))
        orders, items = self._lock_items(requested)
        if not items:
            logger.info("order_items.delete_noop", requested=len(requested))
            return 0

        deleted = self._order_repo.delete_items(items.keys())
        self._finish_many(orders, items.values())
        logger.info(
            "order_items.deleted",
            requested=len(requested),
            deleted=deleted,
        )
        return deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_items(
        self, item_ids: Iterable[UUID]
    ) -> Tuple[List[Order], Dict[UUID, OrderItem]]:
        """Lock the owning orders, then re-read the items under the lock."""
        ids = list(item_ids)
        found = self._order_repo.get_items_by_ids(ids)
        if not found:
            return [], {}
        orders = self._activation.lock_mutable_orders(
            item.order_id for item in found.values()
        )
        return orders, self._order_repo.get_items_by_ids(ids)

    def _finish_many(self, orders: List[Order], items: Iterable[OrderItem]) -> None:
        per_order: Dict[UUID, int] = {}
        for item in items:
            per_order[item.order_id] = per_order.get(item.order_id, 0) + 1
        for order in orders:
            if order.id in per_order:
                self._finish(order, per_order[order.id])

    def _finish(self, order: Order, affected: int) -> None:
        self._order_repo.recalculate_total(order)
        order.add_domain_event(OrderItemsChanged(aggregate_id=order.id, affected=affected))
        self._event_bus.publish_on_commit(order.pull_domain_events())


class OrderItemListingService:
    """Read side: paginated line items and order summaries.

    Stateless per call.  Ordering is ``(created_at, id)``, so consecutive
    offset pages neither skip nor repeat rows while the data is unchanged.
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    @property
    def default_page_size(self) -> int:
        return settings.ORDER_ITEMS_PAGE_SIZE

    @property
    def max_page_size(self) -> int:
        return settings.ORDER_ITEMS_MAX_PAGE_SIZE

    def list_order_items(
        self,
        order_id: UUID,
        offset: int = 0,
        page_size: Optional[int] = None,
        cache_buster: Optional[int] = None,
    ) -> OrderItemPageDTO:
        """Return one page of line items.

        ``cache_buster`` only exists so callers can defeat their own
        caches; it does not affect the result.

        Raises:
            InvalidPagination: offset < 0 or page size out of range.
            OrderNotFound: order does not exist.
        """
        if page_size is None:
            page_size = self.default_page_size
        if offset < 0:
            raise InvalidPagination("Offset must be zero or greater.")
        if not 1 <= page_size <= self.max_page_size:
            raise InvalidPagination(
                f"Page size must be between 1 and {self.max_page_size}."
            )

        order = self._get_order(order_id)
        rows = self._order_repo.list_items(order.id, offset, page_size + 1)
        has_more = len(rows) > page_size
        items: List[OrderItemOutputDTO] = [
            OrderItemOutputDTO.from_entity(row) for row in rows[:page_size]
        ]

        logger.debug(
            "order_items.listed",
            order_id=str(order.id),
            offset=offset,
            page_size=page_size,
            returned=len(items),
            has_more=has_more,
            cache_buster=cache_buster,
        )
        return OrderItemPageDTO(
            order_id=order.id,
            items=items,
            offset=offset,
            page_size=page_size,
            has_more=has_more,
            next_offset=offset + len(items),
            total_amount=order.total_amount,
        )

    def get_order_summary(self, order_id: UUID) -> OrderSummaryDTO:
        """Raises ``OrderNotFound`` when the order does not exist."""
        order = self._get_order(order_id)
        return OrderSummaryDTO.from_entity(order, self._order_repo.count_items(order.id))

    def _get_order(self, order_id: UUID) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order
