"""In-memory event bus implementation."""

from __future__ import annotations

from typing import Dict, Iterable, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.get(event_class, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            handler.handle(event)

    def publish_on_commit(self, events: Iterable[DomainEvent]) -> None:
        """Deliver *events* only if the current transaction commits.

        Outside an atomic block Django runs the callback immediately.
        """
        pending = list(events)
        if not pending:
            return

        def _deliver() -> None:
            for event in pending:
                logger.debug("event_bus.publish", event_name=event.event_name)
                self.publish(event)

        transaction.on_commit(_deliver)


# Global bus instance (singleton)

event_bus = InMemoryEventBus()
