"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- An order is priced against exactly one price book.
- Line items are unique per (order, product); re-adding a product updates
  the existing row.
- OrderItem snapshots the price-book price at add time (``unit_price``).
- OrderItem ``total_price`` is always ``quantity * unit_price`` (on save).
- ``quantity`` lies in ``1..MAX_QUANTITY`` (validators + database check
  constraint on the lower bound).
- Each status change is recorded in ``OrderStatusHistory``.
- Orders are never deleted by this system; line items are hard-deleted.

Whether an order may be mutated is decided by the activation state
machine (``modules.orders.activation``), not by these models.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    MAX_QUANTITY,
    MUTABLE_STATES,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API look-ups.

    ``total_amount`` is the sum of the line-item totals and is recomputed
    by the repository after every line-item mutation.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.DRAFT,
    )
    price_book: models.ForeignKey = models.ForeignKey(
        "products.PriceBook",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=16,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    activated_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True, default=None
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_mutable(self) -> bool:
        """``True`` while line items may still be changed."""
        return self.status in MUTABLE_STATES

    @property
    def is_activated(self) -> bool:
        return self.status == OrderStatus.ACTIVATED

    def can_transition_to(self, new_status: str) -> bool:
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a child Product.

    ``unit_price`` is a **snapshot** of the price-book entry at the time the
    product was added; later price changes do not affect it.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(MAX_QUANTITY)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    total_price: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "product"],
                name="order_items_unique_product",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.unit_price is None:
            raise ValidationError({"unit_price": "Unit price is required."})
        self.total_price = self.quantity * self.unit_price
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_price" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["total_price"]
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} (${self.total_price})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
