"""Unit tests for the catalog models.

Covers:
- Product code normalisation and uniqueness.
- The two-level parent/child hierarchy.
- Price-book entry constraints (positive price, one entry per product).
- The ``active()`` and ``orderable()`` entry querysets.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from modules.products.models import PriceBook, PriceBookEntry, Product

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Product
# ---------------------------------------------------------------------------


class TestProduct:
    def test_code_is_trimmed_and_upper_cased_on_clean(self):
        product = Product(product_code="  abc-1 ", name="Widget")
        product.full_clean()
        assert product.product_code == "ABC-1"

    def test_code_is_unique(self):
        Product.objects.create(product_code="dup", name="First")
        with pytest.raises(IntegrityError):
            Product.objects.create(product_code="DUP", name="Second")

    def test_parent_has_no_parent(self, laptops, laptop_basic):
        assert laptops.is_parent is True
        assert laptop_basic.is_parent is False
        assert list(laptops.children.all()) == [laptop_basic]

    def test_product_cannot_be_its_own_parent(self, laptops):
        laptops.parent = laptops
        with pytest.raises(ValidationError, match="its own parent"):
            laptops.full_clean()

    def test_grandchild_is_rejected(self, laptop_basic):
        grandchild = Product(product_code="lap-basic-x", name="Kit", parent=laptop_basic)
        with pytest.raises(ValidationError, match="one level"):
            grandchild.full_clean()

    def test_str(self, laptop_basic):
        assert str(laptop_basic) == "LAP-BASIC - Laptop Basic"


# ---------------------------------------------------------------------------
# PriceBookEntry
# ---------------------------------------------------------------------------


class TestPriceBookEntry:
    def test_price_must_be_positive_on_clean(self, price_book, laptops):
        child = Product.objects.create(product_code="c", name="C", parent=laptops)
        entry = PriceBookEntry(price_book=price_book, product=child, unit_price=Decimal("0"))
        with pytest.raises(ValidationError):
            entry.full_clean()

    def test_price_must_be_positive_in_database(self, price_book, laptops):
        child = Product.objects.create(product_code="c", name="C", parent=laptops)
        with pytest.raises(IntegrityError):
            PriceBookEntry.objects.create(
                price_book=price_book, product=child, unit_price=Decimal("-1.00")
            )

    def test_one_entry_per_product_and_book(self, price_book, laptop_basic):
        with pytest.raises(IntegrityError):
            PriceBookEntry.objects.create(
                price_book=price_book, product=laptop_basic, unit_price=Decimal("11.00")
            )

    def test_same_product_in_another_book(self, laptop_basic):
        other = PriceBook.objects.create(name="Partner")
        entry = PriceBookEntry.objects.create(
            price_book=other, product=laptop_basic, unit_price=Decimal("9.00")
        )
        assert entry.unit_price == Decimal("9.00")


class TestActiveEntries:
    def test_all_active(self, catalog):
        assert PriceBookEntry.objects.active().count() == 3

    def test_inactive_entry(self, laptop_basic):
        PriceBookEntry.objects.filter(product=laptop_basic).update(is_active=False)
        assert not PriceBookEntry.objects.active().filter(product=laptop_basic).exists()

    def test_inactive_price_book(self, catalog, price_book):
        price_book.is_active = False
        price_book.save()
        assert not PriceBookEntry.objects.active().exists()

    def test_inactive_product(self, laptop_basic):
        laptop_basic.is_active = False
        laptop_basic.save()
        assert not PriceBookEntry.objects.active().filter(product=laptop_basic).exists()

    def test_soft_deleted_product(self, laptop_basic):
        laptop_basic.delete()
        assert not PriceBookEntry.objects.active().filter(product=laptop_basic).exists()


class TestOrderableEntries:
    def test_children_of_live_parents(self, catalog):
        assert PriceBookEntry.objects.orderable().count() == 3

    def test_parent_level_entry_is_not_orderable(self, catalog, price_book, laptops):
        PriceBookEntry.objects.create(
            price_book=price_book, product=laptops, unit_price=Decimal("1.00")
        )
        assert PriceBookEntry.objects.active().filter(product=laptops).exists()
        assert not PriceBookEntry.objects.orderable().filter(product=laptops).exists()

    def test_inactive_parent(self, catalog, laptops):
        laptops.is_active = False
        laptops.save()
        assert PriceBookEntry.objects.orderable().count() == 1

    def test_soft_deleted_parent(self, catalog, laptops):
        laptops.delete()
        remaining = PriceBookEntry.objects.orderable().values_list(
            "product__name", flat=True
        )
        assert list(remaining) == ["Monitor HD"]
