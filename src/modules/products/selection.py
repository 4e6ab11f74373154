"""In-memory product selection for interactive multi-select.

``ProductSelection`` wraps a catalog snapshot and keeps the set of chosen
child products, never holding two children of the same parent.  A request
that would break that rule raises ``SelectionConflict`` and leaves the
previous selection untouched.

Every selected product is added with quantity ``DEFAULT_ADD_QUANTITY``;
quantities are adjusted afterwards on the order items themselves.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog

from modules.products.dtos import CatalogParent
from modules.products.exceptions import ProductNotFound, SelectionConflict

logger = structlog.get_logger(__name__)

DEFAULT_ADD_QUANTITY = 1


@dataclass(frozen=True)
class Selection:
    """Immutable snapshot of the selected child product ids (in pick order)."""

    product_ids: Tuple[UUID, ...] = ()

    def __len__(self) -> int:
        return len(self.product_ids)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self.product_ids

    def quantities(self) -> Dict[UUID, int]:
        return {product_id: DEFAULT_ADD_QUANTITY for product_id in self.product_ids}


class ProductSelection:
    def __init__(self, catalog: Sequence[CatalogParent] = ()) -> None:
        self._child_to_parent: Dict[UUID, UUID] = {}
        self._parent_names: Dict[UUID, str] = {}
        self._selection = Selection()
        self.load_catalog(catalog)

    @property
    def selection(self) -> Selection:
        return self._selection

    def load_catalog(self, catalog: Sequence[CatalogParent]) -> Selection:
        """Swap in a fresh catalog snapshot.

        Selected ids that no longer appear in the snapshot are dropped.
        """
        self._child_to_parent = {
            child.product_id: parent.product_id
            for parent in catalog
            for child in parent.children
        }
        self._parent_names = {parent.product_id: parent.name for parent in catalog}
        kept = tuple(
            pid for pid in self._selection.product_ids if pid in self._child_to_parent
        )
        self._selection = Selection(kept)
        return self._selection

    def parent_of(self, product_id: UUID) -> Optional[UUID]:
        return self._child_to_parent.get(product_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def select(self, product_id: UUID) -> Selection:
        """Add one child product.

        Raises:
            ProductNotFound: *product_id* is not a child in the snapshot.
            SelectionConflict: a sibling is already selected.
        """
        if product_id not in self._child_to_parent:
            raise ProductNotFound(f"Product {product_id} is not an available child.")
        if product_id in self._selection:
            return self._selection
        return self._apply(self._selection.product_ids + (product_id,))

    def deselect(self, product_id: UUID) -> Selection:
        self._selection = Selection(
            tuple(pid for pid in self._selection.product_ids if pid != product_id)
        )
        return self._selection

    def replace(self, product_ids: Iterable[UUID]) -> Selection:
        """Replace the whole selection, as a multi-select grid reports it.

        Ids that are not children in the snapshot (e.g. parent rows) are
        ignored.  The new selection is applied all-or-nothing.
        """
        seen: List[UUID] = []
        for pid in product_ids:
            if pid in self._child_to_parent and pid not in seen:
                seen.append(pid)
        return self._apply(tuple(seen))

    def clear(self) -> Selection:
        self._selection = Selection()
        return self._selection

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(self, candidate: Tuple[UUID, ...]) -> Selection:
        by_parent: Dict[UUID, List[UUID]] = defaultdict(list)
        for pid in candidate:
            by_parent[self.parent_of(pid)].append(pid)

        for parent_id, children in by_parent.items():
            if len(children) > 1:
                logger.info(
                    "selection.conflict",
                    parent_id=str(parent_id),
                    product_ids=[str(pid) for pid in children],
                )
                parent_name = self._parent_names.get(parent_id, str(parent_id))
                raise SelectionConflict(
                    "You can select only one child product per parent "
                    f"('{parent_name}'). Please deselect one of the products "
                    "from the same parent.",
                    parent_id=parent_id,
                    product_ids=tuple(children),
                )

        self._selection = Selection(candidate)
        return self._selection
