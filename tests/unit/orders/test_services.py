"""Unit tests for OrderItemService and OrderItemListingService.

Repositories and the activation state machine are mocked; these tests
pin down rule ordering (gate -> validate -> write), batch rejection and
page arithmetic without touching the ORM.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.orders.constants import MAX_QUANTITY
from modules.orders.dtos import (
    AddOrUpdateQuantitiesDTO,
    DeleteItemsDTO,
    ProvisionOrderDTO,
    UpdateQuantitiesDTO,
)
from modules.orders.events import OrderItemsChanged
from modules.orders.exceptions import (
    InvalidPagination,
    InvalidQuantity,
    OrderActivated,
    OrderItemNotFound,
    OrderNotFound,
    ProductNotFound,
)
from modules.orders.services import OrderItemListingService, OrderItemService
from modules.products.exceptions import PriceBookNotFound

pytestmark = pytest.mark.unit


@pytest.fixture()
def order():
    return MagicMock(id=uuid4(), price_book_id=uuid4())


@pytest.fixture()
def order_repo():
    repo = MagicMock()
    repo.get_items_for_products.return_value = {}
    repo.get_items_by_ids.return_value = {}
    return repo


@pytest.fixture()
def product_repo():
    repo = MagicMock()
    repo.get_active_entries.return_value = {}
    return repo


@pytest.fixture()
def activation(order):
    machine = MagicMock()
    machine.lock_mutable_order.return_value = order
    machine.lock_mutable_orders.return_value = [order]
    return machine


@pytest.fixture()
def event_bus():
    return MagicMock()


@pytest.fixture()
def service(order_repo, product_repo, activation, event_bus):
    return OrderItemService(
        order_repository=order_repo,
        product_repository=product_repo,
        activation=activation,
        event_bus=event_bus,
    )


# ---------------------------------------------------------------------------
# add_or_update_quantities
# ---------------------------------------------------------------------------


class TestAddOrUpdateQuantities:
    def test_creates_new_and_updates_existing(
        self, service, order, order_repo, product_repo, event_bus
    ):
        new_pid, old_pid = uuid4(), uuid4()
        existing = MagicMock(quantity=1, unit_price=Decimal("5.00"))
        order_repo.get_items_for_products.return_value = {old_pid: existing}
        entry = MagicMock(product_id=new_pid, unit_price=Decimal("10.00"))
        product_repo.get_active_entries.return_value = {new_pid: entry}

        affected = service.add_or_update_quantities(
            AddOrUpdateQuantitiesDTO(
                order_id=order.id,
                product_id_to_quantity={new_pid: 3, old_pid: 7},
            )
        )

        assert affected == 2
        order_repo.create_item.assert_called_once_with(order, entry, 3)
        assert existing.quantity == 7
        order_repo.save_item.assert_called_once_with(existing)
        order_repo.recalculate_total.assert_called_once_with(order)
        event = order.add_domain_event.call_args.args[0]
        assert isinstance(event, OrderItemsChanged)
        assert event.affected == 2
        event_bus.publish_on_commit.assert_called_once()

    def test_only_new_products_are_priced(self, service, order, order_repo, product_repo):
        pid = uuid4()
        order_repo.get_items_for_products.return_value = {
            pid: MagicMock(unit_price=Decimal("5.00"))
        }

        service.add_or_update_quantities(
            AddOrUpdateQuantitiesDTO(order_id=order.id, product_id_to_quantity={pid: 2})
        )

        product_repo.get_active_entries.assert_not_called()

    def test_activated_order_is_rejected_before_quantities(
        self, service, order, activation, order_repo
    ):
        activation.lock_mutable_order.side_effect = OrderActivated()

        with pytest.raises(OrderActivated):
            service.add_or_update_quantities(
                AddOrUpdateQuantitiesDTO(
                    order_id=order.id, product_id_to_quantity={uuid4(): 0}
                )
            )

        order_repo.create_item.assert_not_called()

    def test_invalid_quantity_rejects_whole_batch(self, service, order, order_repo):
        with pytest.raises(InvalidQuantity) as exc_info:
            service.add_or_update_quantities(
                AddOrUpdateQuantitiesDTO(
                    order_id=order.id,
                    product_id_to_quantity={uuid4(): 2, uuid4(): 0},
                )
            )

        assert exc_info.value.kind == "invalid_quantity"
        order_repo.create_item.assert_not_called()
        order_repo.save_item.assert_not_called()

    def test_quantity_above_ceiling_is_rejected(self, service, order, order_repo):
        with pytest.raises(InvalidQuantity):
            service.add_or_update_quantities(
                AddOrUpdateQuantitiesDTO(
                    order_id=order.id,
                    product_id_to_quantity={uuid4(): 2, uuid4(): MAX_QUANTITY + 1},
                )
            )

        order_repo.get_items_for_products.assert_not_called()
        order_repo.create_item.assert_not_called()

    def test_line_total_overflow_rejects_whole_batch(
        self, service, order, order_repo, product_repo
    ):
        cheap, dear = uuid4(), uuid4()
        product_repo.get_active_entries.return_value = {
            cheap: MagicMock(unit_price=Decimal("1.00")),
            dear: MagicMock(unit_price=Decimal("99999.99")),
        }

        with pytest.raises(InvalidQuantity) as exc_info:
            service.add_or_update_quantities(
                AddOrUpdateQuantitiesDTO(
                    order_id=order.id,
                    product_id_to_quantity={cheap: 1, dear: MAX_QUANTITY},
                )
            )

        assert str(dear) in exc_info.value.detail
        order_repo.create_item.assert_not_called()

    def test_unpriced_product_rejects_whole_batch(
        self, service, order, order_repo, product_repo
    ):
        priced, unpriced = uuid4(), uuid4()
        product_repo.get_active_entries.return_value = {
            priced: MagicMock(unit_price=Decimal("5.00"))
        }

        with pytest.raises(ProductNotFound):
            service.add_or_update_quantities(
                AddOrUpdateQuantitiesDTO(
                    order_id=order.id,
                    product_id_to_quantity={priced: 1, unpriced: 1},
                )
            )

        order_repo.create_item.assert_not_called()

    def test_empty_batch_is_noop(self, service, order, order_repo, event_bus):
        affected = service.add_or_update_quantities(
            AddOrUpdateQuantitiesDTO(order_id=order.id, product_id_to_quantity={})
        )

        assert affected == 0
        order_repo.recalculate_total.assert_not_called()
        event_bus.publish_on_commit.assert_not_called()


class TestProvision:
    def test_creates_order_from_price_book(self, service, order, order_repo, product_repo):
        book = MagicMock(id=uuid4())
        product_repo.get_active_price_book.return_value = book
        order_repo.create.return_value = order

        order_id, affected = service.provision(
            ProvisionOrderDTO(price_book_id=book.id, product_id_to_quantity={})
        )

        order_repo.create.assert_called_once_with(book)
        assert order_id == order.id
        assert affected == 0

    def test_unknown_price_book(self, service, product_repo, order_repo):
        product_repo.get_active_price_book.return_value = None

        with pytest.raises(PriceBookNotFound):
            service.provision(
                ProvisionOrderDTO(price_book_id=uuid4(), product_id_to_quantity={})
            )

        order_repo.create.assert_not_called()

    def test_needs_exactly_one_order_reference(self):
        with pytest.raises(ValueError):
            ProvisionOrderDTO(product_id_to_quantity={})
        with pytest.raises(ValueError):
            ProvisionOrderDTO(
                order_id=uuid4(), price_book_id=uuid4(), product_id_to_quantity={}
            )


# ---------------------------------------------------------------------------
# update_quantities / delete_items
# ---------------------------------------------------------------------------


class TestUpdateQuantities:
    def test_sets_each_quantity(self, service, order, order_repo):
        item = MagicMock(
            id=uuid4(), order_id=order.id, quantity=1, unit_price=Decimal("5.00")
        )
        order_repo.get_items_by_ids.return_value = {item.id: item}

        updated = service.update_quantities(
            UpdateQuantitiesDTO(order_item_id_to_quantity={item.id: 5})
        )

        assert updated == 1
        assert item.quantity == 5
        order_repo.save_item.assert_called_once_with(item)
        order_repo.recalculate_total.assert_called_once_with(order)

    def test_unknown_item_raises(self, service, order, order_repo):
        item = MagicMock(id=uuid4(), order_id=order.id)
        order_repo.get_items_by_ids.return_value = {item.id: item}

        with pytest.raises(OrderItemNotFound):
            service.update_quantities(
                UpdateQuantitiesDTO(order_item_id_to_quantity={item.id: 2, uuid4(): 2})
            )

        order_repo.save_item.assert_not_called()

    def test_zero_quantity_rejects_batch(self, service, order, order_repo):
        a = MagicMock(id=uuid4(), order_id=order.id, quantity=1)
        b = MagicMock(id=uuid4(), order_id=order.id, quantity=1)
        order_repo.get_items_by_ids.return_value = {a.id: a, b.id: b}

        with pytest.raises(InvalidQuantity):
            service.update_quantities(
                UpdateQuantitiesDTO(order_item_id_to_quantity={a.id: 4, b.id: 0})
            )

        order_repo.save_item.assert_not_called()

    def test_activated_owner_blocks_update(self, service, order, order_repo, activation):
        item = MagicMock(id=uuid4(), order_id=order.id)
        order_repo.get_items_by_ids.return_value = {item.id: item}
        activation.lock_mutable_orders.side_effect = OrderActivated()

        with pytest.raises(OrderActivated):
            service.update_quantities(
                UpdateQuantitiesDTO(order_item_id_to_quantity={item.id: 0})
            )


class TestDeleteItems:
    def test_unknown_ids_are_not_counted(self, service, order, order_repo):
        item = MagicMock(id=uuid4(), order_id=order.id)
        order_repo.get_items_by_ids.return_value = {item.id: item}
        order_repo.delete_items.return_value = 1

        deleted = service.delete_items(DeleteItemsDTO(order_item_ids=[item.id, uuid4()]))

        assert deleted == 1
        assert list(order_repo.delete_items.call_args.args[0]) == [item.id]

    def test_only_unknown_ids_is_noop(self, service, order_repo, activation):
        deleted = service.delete_items(DeleteItemsDTO(order_item_ids=[uuid4()]))

        assert deleted == 0
        activation.lock_mutable_orders.assert_not_called()
        order_repo.delete_items.assert_not_called()


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def _row(order_id):
    product = SimpleNamespace(name="Child", product_code="CHILD", parent=None)
    return SimpleNamespace(
        id=uuid4(),
        order_id=order_id,
        product_id=uuid4(),
        product=product,
        unit_price=Decimal("10.00"),
        quantity=1,
        total_price=Decimal("10.00"),
        created_at=datetime.now(timezone.utc),
    )


class TestListing:
    @pytest.fixture()
    def listing(self, order, order_repo):
        order.total_amount = Decimal("30.00")
        order_repo.get_by_id.return_value = order
        return OrderItemListingService(order_repository=order_repo)

    def test_fetches_one_extra_row_for_has_more(self, listing, order, order_repo):
        order_repo.list_items.return_value = [_row(order.id) for _ in range(3)]

        page = listing.list_order_items(order.id, offset=4, page_size=2)

        order_repo.list_items.assert_called_once_with(order.id, 4, 3)
        assert len(page.items) == 2
        assert page.has_more is True
        assert page.next_offset == 6
        assert page.total_amount == Decimal("30.00")

    def test_last_page(self, listing, order, order_repo):
        order_repo.list_items.return_value = [_row(order.id)]

        page = listing.list_order_items(order.id, offset=0, page_size=2)

        assert page.has_more is False
        assert page.next_offset == 1

    def test_default_page_size_comes_from_settings(self, listing, order, order_repo, settings):
        settings.ORDER_ITEMS_PAGE_SIZE = 7
        order_repo.list_items.return_value = []

        page = listing.list_order_items(order.id)

        assert page.page_size == 7
        order_repo.list_items.assert_called_once_with(order.id, 0, 8)

    @pytest.mark.parametrize("offset,page_size", [(-1, 5), (0, 0), (0, 101)])
    def test_invalid_pagination(self, listing, order, offset, page_size):
        with pytest.raises(InvalidPagination):
            listing.list_order_items(order.id, offset=offset, page_size=page_size)

    def test_unknown_order(self, listing, order_repo):
        order_repo.get_by_id.return_value = None

        with pytest.raises(OrderNotFound):
            listing.list_order_items(uuid4())
