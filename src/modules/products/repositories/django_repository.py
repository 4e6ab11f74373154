"""Django ORM implementation of the catalog repository.

Error handling follows the Null Object pattern: look-ups return ``None``
or omit missing keys instead of raising; the Service Layer decides how
to translate a missing entity into a domain error.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.products.filters import CatalogFilter
from modules.products.models import PriceBook, PriceBookEntry, Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete catalog repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info(
            "product.saved",
            product_id=str(entity.id),
            product_code=entity.product_code,
        )
        return entity

    def list_priced_children(
        self, price_book_id: UUID, parent_name: Optional[str] = None
    ) -> List[PriceBookEntry]:
        queryset = (
            PriceBookEntry.objects.orderable()
            .filter(price_book_id=price_book_id)
            .select_related("product", "product__parent")
            .order_by(
                "product__parent__name",
                "product__parent_id",
                "product__name",
                "product_id",
            )
        )
        queryset = CatalogFilter(
            data={"parent_name": parent_name or ""}, queryset=queryset
        ).qs
        return list(queryset)

    def get_active_entries(
        self, price_book_id: UUID, product_ids: Iterable[UUID]
    ) -> Dict[UUID, PriceBookEntry]:
        ids = list(product_ids)
        if not ids:
            return {}
        entries = (
            PriceBookEntry.objects.orderable()
            .filter(price_book_id=price_book_id, product_id__in=ids)
            .select_related("product", "product__parent")
        )
        return {entry.product_id: entry for entry in entries}

    def get_active_price_book(self, price_book_id: UUID) -> Optional[PriceBook]:
        try:
            return PriceBook.objects.filter(id=price_book_id, is_active=True).first()
        except (ValueError, ValidationError):
            return None
