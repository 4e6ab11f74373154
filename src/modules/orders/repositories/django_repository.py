"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Methods do
not open their own transactions for line-item writes: the services own
the unit of work, so a batch either commits as a whole or not at all.

Concurrency control uses ``select_for_update()`` on the order row; the
gating status check always happens on the locked row.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum

from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository
from modules.products.models import PriceBook, PriceBookEntry

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order; ``None`` for non-existent or invalid IDs."""
        try:
            return Order.objects.select_related("price_book").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def create(self, price_book: PriceBook) -> Order:
        order = Order(price_book=price_book)
        order.save()
        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            price_book_id=str(price_book.id),
        )
        return order

    def lock_many(self, ids: Iterable[UUID]) -> List[Order]:
        return list(
            Order.objects.select_for_update().filter(id__in=list(ids)).order_by("id")
        )

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    def recalculate_total(self, order: Order) -> Decimal:
        total = OrderItem.objects.filter(order_id=order.id).aggregate(
            total=Sum("total_price")
        )["total"] or Decimal("0.00")
        order.total_amount = total
        order.save(update_fields=["total_amount"])
        return total

    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get_items_by_ids(self, item_ids: Iterable[UUID]) -> Dict[UUID, OrderItem]:
        ids = list(item_ids)
        if not ids:
            return {}
        return {item.id: item for item in OrderItem.objects.filter(id__in=ids)}

    def get_items_for_products(
        self, order_id: UUID, product_ids: Iterable[UUID]
    ) -> Dict[UUID, OrderItem]:
        ids = list(product_ids)
        if not ids:
            return {}
        items = OrderItem.objects.filter(order_id=order_id, product_id__in=ids)
        return {item.product_id: item for item in items}

    def create_item(
        self, order: Order, entry: PriceBookEntry, quantity: int
    ) -> OrderItem:
        item = OrderItem(
            order=order,
            product_id=entry.product_id,
            quantity=quantity,
            unit_price=entry.unit_price,
        )
        item.save()
        logger.info(
            "order_item.created",
            order_id=str(order.id),
            item_id=str(item.id),
            product_id=str(entry.product_id),
            quantity=quantity,
        )
        return item

    def save_item(self, item: OrderItem) -> OrderItem:
        item.save(update_fields=["quantity"])
        logger.info(
            "order_item.quantity_set",
            order_id=str(item.order_id),
            item_id=str(item.id),
            quantity=item.quantity,
        )
        return item

    def delete_items(self, item_ids: Iterable[UUID]) -> int:
        ids = list(item_ids)
        if not ids:
            return 0
        deleted, _ = OrderItem.objects.filter(id__in=ids).delete()
        return deleted

    def list_items(self, order_id: UUID, offset: int, limit: int) -> List[OrderItem]:
        queryset = (
            OrderItem.objects.filter(order_id=order_id)
            .select_related("product", "product__parent")
            .order_by("created_at", "id")
        )
        return list(queryset[offset : offset + limit])

    def count_items(self, order_id: UUID) -> int:
        return OrderItem.objects.filter(order_id=order_id).count()

    def quantities_by_product(self, order_id: UUID) -> Dict[UUID, int]:
        rows = OrderItem.objects.filter(order_id=order_id).values_list(
            "product_id", "quantity"
        )
        return dict(rows)

    def item_product_ids(self, order_id: UUID) -> List[UUID]:
        return list(
            OrderItem.objects.filter(order_id=order_id).values_list(
                "product_id", flat=True
            )
        )
