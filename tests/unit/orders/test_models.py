"""Unit tests for the Order and OrderItem models.

Covers:
- Status helpers (can_transition_to, is_terminal, is_mutable).
- Line-item totals and the quantity constraints.
- One line item per product per order.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from modules.orders.constants import (
    MAX_QUANTITY,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.models import Order, OrderItem

pytestmark = pytest.mark.unit


# ===========================================================================
# Order status helpers
# ===========================================================================


class TestOrderStatus:
    def test_new_order_is_draft(self, order):
        assert order.status == OrderStatus.DRAFT
        assert order.is_mutable is True
        assert order.is_activated is False
        assert order.activated_at is None

    def test_draft_can_only_become_activated(self, order):
        assert order.can_transition_to(OrderStatus.ACTIVATED) is True
        assert order.can_transition_to(OrderStatus.DRAFT) is False

    def test_activated_is_terminal(self, order):
        order.status = OrderStatus.ACTIVATED
        assert order.is_terminal is True
        assert order.is_mutable is False
        assert order.can_transition_to(OrderStatus.DRAFT) is False

    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_every_status_has_transitions_declared(self, status):
        assert status in VALID_TRANSITIONS

    def test_terminal_states_have_no_exit(self):
        for status in TERMINAL_STATES:
            assert VALID_TRANSITIONS[status] == set()

    def test_order_number_is_unique(self, order, price_book):
        other = Order(price_book=price_book, order_number=order.order_number)
        with pytest.raises(IntegrityError):
            Order.objects.bulk_create([other])


# ===========================================================================
# OrderItem
# ===========================================================================


class TestOrderItem:
    def test_total_is_quantity_times_unit_price(self, order, laptop_basic):
        item = OrderItem.objects.create(
            order=order, product=laptop_basic, quantity=3, unit_price=Decimal("10.00")
        )
        assert item.total_price == Decimal("30.00")

    def test_update_fields_also_persist_total(self, order, laptop_basic):
        item = OrderItem.objects.create(
            order=order, product=laptop_basic, quantity=1, unit_price=Decimal("10.00")
        )
        item.quantity = 4
        item.save(update_fields=["quantity"])

        item.refresh_from_db()
        assert item.total_price == Decimal("40.00")

    def test_unit_price_is_required(self, order, laptop_basic):
        with pytest.raises(ValidationError):
            OrderItem(order=order, product=laptop_basic, quantity=1).save()

    def test_quantity_below_one_fails_clean(self, order, laptop_basic):
        item = OrderItem(
            order=order, product=laptop_basic, quantity=0, unit_price=Decimal("10.00")
        )
        with pytest.raises(ValidationError):
            item.full_clean()

    def test_quantity_above_ceiling_fails_clean(self, order, laptop_basic):
        item = OrderItem(
            order=order,
            product=laptop_basic,
            quantity=MAX_QUANTITY + 1,
            unit_price=Decimal("10.00"),
        )
        with pytest.raises(ValidationError) as exc_info:
            item.full_clean()
        assert "quantity" in exc_info.value.message_dict

    def test_quantity_below_one_fails_in_database(self, order, laptop_basic):
        with pytest.raises(IntegrityError):
            OrderItem.objects.create(
                order=order, product=laptop_basic, quantity=0, unit_price=Decimal("10.00")
            )

    def test_one_item_per_product(self, order, laptop_basic):
        OrderItem.objects.create(
            order=order, product=laptop_basic, quantity=1, unit_price=Decimal("10.00")
        )
        with pytest.raises(IntegrityError):
            OrderItem.objects.create(
                order=order, product=laptop_basic, quantity=2, unit_price=Decimal("10.00")
            )
