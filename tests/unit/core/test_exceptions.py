"""Unit tests for the domain error taxonomy and its DRF translation."""

from __future__ import annotations

import pytest
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from modules.core.exceptions import DomainAPIException, DomainExceptionHandler
from modules.orders.exceptions import (
    AlreadyActivated,
    InvalidPagination,
    InvalidQuantity,
    NotActivatable,
    OrderActivated,
    OrderItemNotFound,
    OrderNotFound,
)
from modules.orders.workflow import WorkflowBusy
from modules.products.exceptions import PriceBookNotFound, ProductNotFound, SelectionConflict

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "error,kind,http_status",
    [
        (OrderNotFound(), "not_found", status.HTTP_404_NOT_FOUND),
        (OrderItemNotFound(), "not_found", status.HTTP_404_NOT_FOUND),
        (ProductNotFound(), "not_found", status.HTTP_404_NOT_FOUND),
        (PriceBookNotFound(), "not_found", status.HTTP_404_NOT_FOUND),
        (OrderActivated(), "order_activated", status.HTTP_409_CONFLICT),
        (NotActivatable(), "not_activatable", status.HTTP_409_CONFLICT),
        (AlreadyActivated(), "already_activated", status.HTTP_409_CONFLICT),
        (SelectionConflict(), "selection_conflict", status.HTTP_409_CONFLICT),
        (WorkflowBusy(), "workflow_busy", status.HTTP_409_CONFLICT),
        (InvalidQuantity(), "invalid_quantity", status.HTTP_400_BAD_REQUEST),
        (InvalidPagination(), "invalid_pagination", status.HTTP_400_BAD_REQUEST),
    ],
)
def test_kind_and_status(error, kind, http_status):
    assert error.kind == kind
    assert error.http_status == http_status


def test_detail_defaults_and_overrides():
    assert OrderNotFound().detail == "Order not found."
    assert str(OrderNotFound("Order X not found.")) == "Order X not found."


def test_domain_error_is_carried_as_api_exception():
    exc = DomainAPIException(OrderActivated("Order ORD-1 is Activated."))

    assert exc.status_code == status.HTTP_409_CONFLICT
    assert exc.get_codes() == "order_activated"
    assert str(exc.detail) == "Order ORD-1 is Activated."


def test_handler_converts_domain_errors_only():
    handler = DomainExceptionHandler(InvalidQuantity(), {})

    converted = handler.convert_known_exceptions(InvalidQuantity())
    assert isinstance(converted, DomainAPIException)
    assert converted.status_code == status.HTTP_400_BAD_REQUEST

    drf_error = NotAuthenticated()
    assert handler.convert_known_exceptions(drf_error) is drf_error
