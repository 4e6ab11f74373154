from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from django.core.cache import cache

from rest_framework.test import APIClient

from modules.orders.models import Order
from modules.orders.providers import build_order_services
from modules.products.models import PriceBook, PriceBookEntry, Product


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle history lives in the cache; start every test clean."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client():
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    user = get_user_model().objects.create_user(
        username="composer", password="testpass123"
    )
    client.force_authenticate(user=user)
    return client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def price_book():
    return PriceBook.objects.create(name="Standard", is_standard=True)


@pytest.fixture()
def laptops():
    """Parent product P1."""
    return Product.objects.create(product_code="lap", name="Laptops")


@pytest.fixture()
def laptop_basic(laptops, price_book):
    """Child C1 of P1, listed at $10."""
    child = Product.objects.create(
        product_code="lap-basic", name="Laptop Basic", parent=laptops
    )
    PriceBookEntry.objects.create(
        price_book=price_book, product=child, unit_price=Decimal("10.00")
    )
    return child


@pytest.fixture()
def laptop_pro(laptops, price_book):
    """Child C2 of P1, listed at $15."""
    child = Product.objects.create(
        product_code="lap-pro", name="Laptop Pro", parent=laptops
    )
    PriceBookEntry.objects.create(
        price_book=price_book, product=child, unit_price=Decimal("15.00")
    )
    return child


@pytest.fixture()
def monitors():
    return Product.objects.create(product_code="mon", name="Monitors")


@pytest.fixture()
def monitor_hd(monitors, price_book):
    child = Product.objects.create(
        product_code="mon-hd", name="Monitor HD", parent=monitors
    )
    PriceBookEntry.objects.create(
        price_book=price_book, product=child, unit_price=Decimal("120.00")
    )
    return child


@pytest.fixture()
def catalog(laptop_basic, laptop_pro, monitor_hd):
    return {
        "laptop_basic": laptop_basic,
        "laptop_pro": laptop_pro,
        "monitor_hd": monitor_hd,
    }


@pytest.fixture()
def order(price_book):
    return Order.objects.create(price_book=price_book)


@pytest.fixture()
def services():
    return build_order_services()
