"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import OrderItemsChanged, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderItemsChangedHandler(IEventHandler[OrderItemsChanged]):
    def handle(self, event: OrderItemsChanged) -> None:
        logger.info(
            "order.event.items_changed",
            order_id=str(event.aggregate_id),
            affected=event.affected,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


order_items_changed_handler = OrderItemsChangedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
