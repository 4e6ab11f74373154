"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderItemsChanged(DomainEvent):
    """Raised when line items are added, re-quantified or deleted."""

    affected: int = 0


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes (DRAFT -> ACTIVATED)."""

    old_status: str = ""
    new_status: str = ""
