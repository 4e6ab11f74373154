"""Order activation state machine.

``DRAFT -> ACTIVATED`` is the only transition and it cannot be undone.
This module is the single authority on whether an order may change:

- ``lock_mutable_order`` / ``lock_mutable_orders`` are called by every
  line-item mutation *inside* its transaction.  They lock the order row
  and check the status on the locked row, so no write can slip in after
  activation commits.
- ``can_activate`` / ``activate`` evaluate eligibility through one
  predicate, ``is_activatable``.

Eligibility: the order is DRAFT, has at least one line item, and every
line item's product still has an active entry in the order's price book.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Tuple
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.dtos import ActivationStatusDTO
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import (
    AlreadyActivated,
    NotActivatable,
    OrderActivated,
    OrderNotFound,
)

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


def is_activatable(status: str, item_count: int, unpriced_count: int) -> bool:
    """The activation rule, in one place."""
    return status == OrderStatus.DRAFT and item_count > 0 and unpriced_count == 0


@dataclass(frozen=True)
class ActivationCheck:
    status: str
    item_count: int
    unpriced_product_ids: Tuple[UUID, ...] = field(default_factory=tuple)

    @property
    def eligible(self) -> bool:
        return is_activatable(
            self.status, self.item_count, len(self.unpriced_product_ids)
        )

    @property
    def reasons(self) -> List[str]:
        reasons = []
        if self.status != OrderStatus.DRAFT:
            reasons.append(f"Order status is {self.status}.")
        if self.item_count == 0:
            reasons.append("Order has no items.")
        if self.unpriced_product_ids:
            reasons.append(
                f"{len(self.unpriced_product_ids)} item(s) have no active "
                "price book entry."
            )
        return reasons


class ActivationStateMachine:
    """Gatekeeper for order mutability and the activation transition."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        event_bus: IEventBus,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Gating (must be called inside the caller's transaction)
    # ------------------------------------------------------------------

    def lock_mutable_order(self, order_id: UUID) -> Order:
        """Lock *order_id* and ensure its items may change.

        Raises:
            OrderNotFound: order does not exist.
            OrderActivated: order is no longer DRAFT.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        self._ensure_mutable(order)
        return order

    def lock_mutable_orders(self, order_ids: Iterable[UUID]) -> List[Order]:
        """Lock several orders (in PK order) and ensure all are mutable."""
        orders = self._order_repo.lock_many(set(order_ids))
        for order in orders:
            self._ensure_mutable(order)
        return orders

    def _ensure_mutable(self, order: Order) -> None:
        if not order.is_mutable:
            logger.warning(
                "order.mutation_blocked",
                order_id=str(order.id),
                status=order.status,
            )
            raise OrderActivated(
                f"Order {order.order_number} is {order.status}; "
                "its items can no longer be changed."
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def check(self, order_id: UUID) -> Tuple[Order, ActivationCheck]:
        order = self._get_order(order_id)
        return order, self._evaluate(order)

    def can_activate(self, order_id: UUID) -> bool:
        """Raises ``OrderNotFound`` when the order does not exist."""
        _, result = self.check(order_id)
        return result.eligible

    def describe(self, order_id: UUID) -> ActivationStatusDTO:
        order, result = self.check(order_id)
        return ActivationStatusDTO(
            order_id=order.id,
            status=order.status,
            is_activated=order.is_activated,
            can_activate=result.eligible,
            reasons=result.reasons,
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def activate(self, order_id: UUID, notes: str = "") -> Order:
        """Move the order to ACTIVATED.

        Raises:
            OrderNotFound: order does not exist.
            AlreadyActivated: the order was activated before.
            NotActivatable: eligibility rule not met.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), current_status=order.status)

        if order.status == OrderStatus.ACTIVATED:
            log.warning("order.already_activated")
            raise AlreadyActivated(f"Order {order.order_number} is already activated.")

        result = self._evaluate(order)
        if not result.eligible or not order.can_transition_to(OrderStatus.ACTIVATED):
            log.warning("order.not_activatable", reasons=result.reasons)
            raise NotActivatable(" ".join(result.reasons) or "Order cannot be activated.")

        old_status = order.status
        order.status = OrderStatus.ACTIVATED
        order.activated_at = timezone.now()
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=order.status,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=order.status,
            notes=notes or "Order activated",
            old_status=old_status,
        )
        self._event_bus.publish_on_commit(order.pull_domain_events())

        log.info("order.activated", item_count=result.item_count)
        return order

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_order(self, order_id: UUID) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _evaluate(self, order: Order) -> ActivationCheck:
        product_ids = self._order_repo.item_product_ids(order.id)
        if order.price_book_id is None:
            priced = {}
        else:
            priced = self._product_repo.get_active_entries(
                order.price_book_id, product_ids
            )
        unpriced = tuple(pid for pid in product_ids if pid not in priced)
        return ActivationCheck(
            status=order.status,
            item_count=len(product_ids),
            unpriced_product_ids=unpriced,
        )
