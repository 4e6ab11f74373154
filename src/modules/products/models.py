"""Product catalog models: products, price books and price-book entries.

Catalog rules implemented:
- Products form a two-level hierarchy: a parent groups children, and only
  children are orderable.  A parent may not itself have a parent.
- ``product_code`` is unique and normalised to uppercase on save.
- A price-book entry links one product to one price book (unique pair)
  with a ``unit_price`` greater than zero.
- An entry is *active* only when the entry, its price book and its product
  are all active and the product has not been soft-deleted.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

logger = structlog.get_logger(__name__)


class Product(SoftDeleteModel):
    """Catalog entry, either a parent (grouping) or a child (orderable)."""

    product_code = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
    )

    class Meta:
        db_table = "products"
        ordering = ["name", "id"]
        indexes = [
            models.Index(fields=["parent", "name"], name="products_parent_name_idx"),
        ]

    @property
    def is_parent(self) -> bool:
        return self.parent_id is None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.product_code:
            self.product_code = self.product_code.strip().upper()
        if not self.is_parent:
            if self.parent_id == self.id:
                raise ValidationError({"parent": "A product cannot be its own parent."})
            if not self.parent.is_parent:
                raise ValidationError(
                    {"parent": "Only one level of product hierarchy is allowed."}
                )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.product_code:
            self.product_code = self.product_code.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                product_code=self.product_code,
                parent_id=str(self.parent_id) if self.parent_id else None,
            )

    def __str__(self) -> str:
        return f"{self.product_code} - {self.name}"


class PriceBook(BaseModel):
    """Named set of product prices; an order is priced against exactly one."""

    name = models.CharField(max_length=255, unique=True)
    is_active = models.BooleanField(default=True)
    is_standard = models.BooleanField(default=False)

    class Meta:
        db_table = "price_books"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class PriceBookEntryQuerySet(models.QuerySet):
    def active(self) -> PriceBookEntryQuerySet:
        """Entries usable for pricing right now."""
        return self.filter(
            is_active=True,
            price_book__is_active=True,
            product__is_active=True,
            product__deleted_at__isnull=True,
        )

    def orderable(self) -> PriceBookEntryQuerySet:
        """Active entries for child products under a live parent."""
        return self.active().filter(
            product__parent__isnull=False,
            product__parent__is_active=True,
            product__parent__deleted_at__isnull=True,
        )


class PriceBookEntry(BaseModel):
    """List price of one product inside one price book."""

    price_book = models.ForeignKey(
        PriceBook,
        on_delete=models.CASCADE,
        related_name="entries",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="price_book_entries",
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    is_active = models.BooleanField(default=True)

    objects = PriceBookEntryQuerySet.as_manager()

    class Meta:
        db_table = "price_book_entries"
        constraints = [
            models.UniqueConstraint(
                fields=["price_book", "product"],
                name="price_book_entries_unique_product",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gt=0),
                name="price_book_entries_price_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} @ {self.unit_price} ({self.price_book_id})"
