"""Service wiring for the order workflow.

Builds the catalog, mutation, listing and activation services over the
Django ORM repositories and the process-wide event bus.  Views and the
orchestration layer obtain their services here instead of constructing
repositories themselves.
"""

from __future__ import annotations

from dataclasses import dataclass

from modules.orders.activation import ActivationStateMachine
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderItemListingService, OrderItemService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import CatalogService
from shared.infrastructure.bus import event_bus


@dataclass(frozen=True)
class OrderServices:
    catalog: CatalogService
    items: OrderItemService
    listing: OrderItemListingService
    activation: ActivationStateMachine


def build_order_services() -> OrderServices:
    order_repo = OrderDjangoRepository()
    product_repo = ProductDjangoRepository()
    activation = ActivationStateMachine(
        order_repository=order_repo,
        product_repository=product_repo,
        event_bus=event_bus,
    )
    return OrderServices(
        catalog=CatalogService(
            product_repository=product_repo,
            order_repository=order_repo,
        ),
        items=OrderItemService(
            order_repository=order_repo,
            product_repository=product_repo,
            activation=activation,
            event_bus=event_bus,
        ),
        listing=OrderItemListingService(order_repository=order_repo),
        activation=activation,
    )
