"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
carries the machine-readable ``kind`` the REST edge reports; see
``modules.core.exceptions``.
"""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import Conflict, DomainError, NotFound
from modules.products.exceptions import ProductNotFound

__all__ = [
    "AlreadyActivated",
    "InvalidPagination",
    "InvalidQuantity",
    "NotActivatable",
    "OrderActivated",
    "OrderItemNotFound",
    "OrderNotFound",
    "ProductNotFound",
]


class OrderNotFound(NotFound):
    """The requested order does not exist."""

    default_detail = "Order not found."


class OrderItemNotFound(NotFound):
    """A referenced order line item does not exist."""

    default_detail = "Order item not found."


class OrderActivated(Conflict):
    """A line-item mutation was attempted on an activated order."""

    kind = "order_activated"
    default_detail = "Order is activated; its items can no longer be changed."


class NotActivatable(Conflict):
    """Activation preconditions are not met."""

    kind = "not_activatable"
    default_detail = "Order cannot be activated."


class AlreadyActivated(Conflict):
    """The order was already activated; activation is not repeatable."""

    kind = "already_activated"
    default_detail = "Order is already activated."


class InvalidQuantity(DomainError):
    """A line-item quantity or line total is out of range."""

    kind = "invalid_quantity"
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = "Quantity is out of range."


class InvalidPagination(DomainError):
    """Offset or page size outside the accepted range."""

    kind = "invalid_pagination"
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid pagination parameters."
