"""Order domain constants.

Defines status choices and the one-way activation state machine:
``DRAFT`` is the only mutable state and ``ACTIVATED`` is terminal.
"""

from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    ACTIVATED = "ACTIVATED", "Activated"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.DRAFT: {OrderStatus.ACTIVATED},
    OrderStatus.ACTIVATED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.ACTIVATED}

# Line items may only be created, edited or deleted in these states.
MUTABLE_STATES: set[str] = {OrderStatus.DRAFT}

ORDER_NUMBER_MAX_RETRIES = 5

# Upper bounds that keep every line total inside OrderItem.total_price
# (12 digits, 2 decimal places) and the quantity inside PositiveIntegerField.
MAX_QUANTITY = 1_000_000
MAX_LINE_TOTAL = Decimal("9999999999.99")
