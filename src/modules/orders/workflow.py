"""Orchestration layer for the order-composition screens.

Composes the catalog, selection, mutation, listing and activation
services into the end-to-end flow: search -> select -> add -> list ->
edit/delete -> activate.

- ``CatalogPanel`` and ``OrderItemsPanel`` hold what a view renders.  Read
  failures leave them empty with ``error`` set instead of raising.
- ``OrderWorkflow`` runs the mutations.  It refuses overlapping mutations
  (``WorkflowBusy``), turns failures into error ``Notice`` records while
  keeping panel state, and after every success explicitly invalidates and
  refetches both panels and the activation hint.  Deleting a line item
  is two-step: ``request_delete`` marks it and ``confirm_delete`` writes.

``is_order_activated`` / ``can_activate`` on the workflow are display
hints.  Writes are always sent to the services, which gate them on the
locked order row.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Iterator, List, Mapping, Optional
from uuid import UUID

import structlog
from django.db import DatabaseError

from modules.core.exceptions import Conflict, DomainError
from modules.orders.dtos import (
    AddOrUpdateQuantitiesDTO,
    DeleteItemsDTO,
    OrderItemOutputDTO,
    UpdateQuantitiesDTO,
)
from modules.products.dtos import CatalogParent, ProductSearchDTO
from modules.products.exceptions import SelectionConflict
from modules.products.selection import ProductSelection, Selection

if TYPE_CHECKING:
    from modules.orders.providers import OrderServices
    from modules.orders.services import OrderItemListingService
    from modules.products.services import CatalogService

logger = structlog.get_logger(__name__)

READ_FAILURES = (DomainError, DatabaseError)


class WorkflowBusy(Conflict):
    """A mutation is already running for this session."""

    kind = "workflow_busy"
    default_detail = "Another change to this order is still in progress."


@dataclass(frozen=True)
class Notice:
    """User-facing message shown after a workflow action."""

    level: str
    message: str


def _describe(exc: Exception) -> str:
    if isinstance(exc, DomainError):
        return exc.detail
    return "An unexpected error occurred."


# ---------------------------------------------------------------------------
# Panels
# ---------------------------------------------------------------------------


class CatalogPanel:
    """Available products for one order plus the in-progress selection."""

    def __init__(self, catalog_service: CatalogService, order_id: UUID) -> None:
        self._service = catalog_service
        self.order_id = order_id
        self.products: List[CatalogParent] = []
        self.error: Optional[str] = None
        self.search_term = ""
        self.is_open = False
        self.selection = ProductSelection()

    @property
    def available_count(self) -> int:
        return sum(len(parent.children) for parent in self.products)

    def load(self) -> List[CatalogParent]:
        dto = ProductSearchDTO(order_id=self.order_id, parent_name=self.search_term)
        try:
            products = self._service.list_available_products(dto)
        except READ_FAILURES as exc:
            logger.warning(
                "workflow.catalog_load_failed",
                order_id=str(self.order_id),
                error=str(exc),
            )
            self.products = []
            self.error = _describe(exc)
            self.selection.load_catalog([])
            return []

        self.products = products
        self.error = None
        self.selection.load_catalog(products)
        return products

    def refresh(self) -> List[CatalogParent]:
        """Re-run the current search."""
        return self.load()

    def search(self, term: Optional[str]) -> List[CatalogParent]:
        self.search_term = (term or "").strip()
        return self.load()

    def open(self) -> List[CatalogParent]:
        self.is_open = True
        self.search_term = ""
        self.selection.clear()
        return self.load()

    def close(self) -> None:
        self.is_open = False
        self.search_term = ""
        self.selection.clear()


class OrderItemsPanel:
    """Incrementally loaded line items of one order."""

    def __init__(
        self,
        listing_service: OrderItemListingService,
        order_id: UUID,
        page_size: Optional[int] = None,
    ) -> None:
        self._service = listing_service
        self.order_id = order_id
        self.page_size = page_size or listing_service.default_page_size
        self.items: List[OrderItemOutputDTO] = []
        self.has_more = True
        self.error: Optional[str] = None
        self.total_amount = Decimal("0.00")
        self._freshness: Optional[int] = None

    @property
    def offset(self) -> int:
        return len(self.items)

    def load_more(self) -> List[OrderItemOutputDTO]:
        """Append the next page; returns the rows that were added."""
        if not self.has_more:
            return []
        try:
            page = self._service.list_order_items(
                self.order_id,
                offset=self.offset,
                page_size=self.page_size,
                cache_buster=self._freshness,
            )
        except READ_FAILURES as exc:
            logger.warning(
                "workflow.items_load_failed",
                order_id=str(self.order_id),
                offset=self.offset,
                error=str(exc),
            )
            self.error = _describe(exc)
            return []

        self.items.extend(page.items)
        self.has_more = page.has_more
        self.total_amount = page.total_amount
        self.error = None
        return page.items

    def refresh(self) -> List[OrderItemOutputDTO]:
        """Reload from the start, as many rows as were shown before."""
        keep = max(len(self.items), self.page_size)
        self._freshness = max(time.monotonic_ns(), (self._freshness or 0) + 1)
        self.items = []
        self.has_more = True
        while self.has_more and len(self.items) < keep:
            if not self.load_more():
                break
        return self.items


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class OrderWorkflow:
    """One user session composing a single order."""

    def __init__(
        self,
        order_id: UUID,
        services: OrderServices,
        page_size: Optional[int] = None,
    ) -> None:
        self.order_id = order_id
        self._services = services
        self.catalog = CatalogPanel(services.catalog, order_id)
        self.items = OrderItemsPanel(services.listing, order_id, page_size)
        self.is_order_activated = False
        self.can_activate = False
        self.status_error: Optional[str] = None
        self.pending_delete: Optional[UUID] = None
        self.notices: List[Notice] = []
        self._busy = threading.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.refresh_status()
        self.items.refresh()

    def refresh_status(self) -> None:
        try:
            order, check = self._services.activation.check(self.order_id)
        except READ_FAILURES as exc:
            self.status_error = _describe(exc)
            self.can_activate = False
            return
        self.status_error = None
        self.is_order_activated = order.is_activated
        self.can_activate = check.eligible

    def invalidate(self) -> None:
        """Refetch everything the last mutation may have changed."""
        self.refresh_status()
        self.items.refresh()
        if self.catalog.is_open:
            self.catalog.refresh()

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_product(self, product_id: UUID) -> Selection:
        try:
            return self.catalog.selection.select(product_id)
        except DomainError as exc:
            self._notify("error", exc.detail)
            return self.catalog.selection.selection

    def set_selection(self, product_ids: Iterable[UUID]) -> Selection:
        try:
            return self.catalog.selection.replace(product_ids)
        except SelectionConflict as exc:
            self._notify("error", exc.detail)
            return self.catalog.selection.selection

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_selected_products(self) -> Optional[int]:
        selection = self.catalog.selection.selection
        if not selection:
            self._notify("warning", "Please select at least one child product to add.")
            return None

        dto = AddOrUpdateQuantitiesDTO(
            order_id=self.order_id,
            product_id_to_quantity=selection.quantities(),
        )
        with self._guard():
            try:
                affected = self._services.items.add_or_update_quantities(dto)
            except READ_FAILURES as exc:
                self._fail("Failed to add products to order", exc)
                return None

        self._notify("success", f"{len(selection)} product(s) added/updated successfully.")
        self.catalog.close()
        self.invalidate()
        return affected

    def update_quantities(self, quantities: Mapping[UUID, Optional[int]]) -> Optional[int]:
        changes = {item_id: qty for item_id, qty in quantities.items() if qty is not None}
        if not changes:
            return None

        with self._guard():
            try:
                updated = self._services.items.update_quantities(
                    UpdateQuantitiesDTO(order_item_id_to_quantity=changes)
                )
            except READ_FAILURES as exc:
                self._fail("Failed to update quantity", exc)
                return None

        self._notify("success", "Quantity updated successfully.")
        self.invalidate()
        return updated

    def request_delete(self, item_id: UUID) -> None:
        """Mark *item_id* for deletion; nothing is written until confirmed."""
        self.pending_delete = item_id

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def confirm_delete(self) -> Optional[int]:
        item_id = self.pending_delete
        if item_id is None:
            return None
        deleted = self.delete_item(item_id)
        self.pending_delete = None
        return deleted

    def delete_item(self, item_id: UUID) -> Optional[int]:
        with self._guard():
            try:
                deleted = self._services.items.delete_items(
                    DeleteItemsDTO(order_item_ids=[item_id])
                )
            except READ_FAILURES as exc:
                self._fail("Failed to delete order item", exc)
                return None

        if deleted:
            self._notify("success", "Order item deleted successfully.")
        else:
            self._notify("warning", "Order item was not found; nothing was deleted.")
        self.invalidate()
        return deleted

    def activate(self) -> bool:
        with self._guard():
            try:
                self._services.activation.activate(self.order_id)
            except READ_FAILURES as exc:
                self._fail("Failed to activate order", exc)
                return False

        self._notify("success", "Order activated successfully.")
        self.invalidate()
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _guard(self) -> Iterator[None]:
        if not self._busy.acquire(blocking=False):
            raise WorkflowBusy()
        try:
            yield
        finally:
            self._busy.release()

    def _fail(self, action: str, exc: Exception) -> None:
        if isinstance(exc, DomainError):
            logger.info("workflow.mutation_rejected", kind=exc.kind, action=action)
        else:
            logger.exception("workflow.mutation_failed", action=action)
        self._notify("error", f"{action}: {_describe(exc)}")

    def _notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))
