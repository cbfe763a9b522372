"""Unit tests for order numbering, the status lifecycle and slugs."""

from datetime import date

import pytest
from libs.common.text import slugify
from services.store_service.models import OrderStatus
from services.store_service.services.order_numbers import format_order_number
from services.store_service.services.order_service import (
    USER_CANCELLABLE,
    is_legal_transition,
)

# ---------------------------------------------------------------------------
# Order numbers
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_order_number_format():
    assert format_order_number(date(2024, 3, 9), 7) == "ORD-20240309-0007"


@pytest.mark.unit
def test_order_number_sequence_is_zero_padded_to_four_digits():
    assert format_order_number(date(2024, 12, 31), 1234) == "ORD-20241231-1234"
    assert format_order_number(date(2024, 12, 31), 1).endswith("-0001")


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "current,new",
    [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED),
        (OrderStatus.CONFIRMED, OrderStatus.SHIPPED),
        (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
        (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
        (OrderStatus.DELIVERED, OrderStatus.RETURNED),
    ],
)
def test_legal_transitions(current, new):
    assert is_legal_transition(current, new)


@pytest.mark.unit
@pytest.mark.parametrize(
    "current,new",
    [
        (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.CONFIRMED),
        (OrderStatus.PENDING, OrderStatus.RETURNED),
        (OrderStatus.RETURNED, OrderStatus.DELIVERED),
    ],
)
def test_illegal_transitions(current, new):
    assert not is_legal_transition(current, new)


@pytest.mark.unit
def test_customers_cancel_only_before_processing():
    assert USER_CANCELLABLE == {OrderStatus.PENDING, OrderStatus.CONFIRMED}


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_slugify_collapses_punctuation():
    assert slugify("Café Crème -- Deluxe!") == "cafe-creme-deluxe"


@pytest.mark.unit
def test_slugify_of_symbols_only_is_empty():
    assert slugify("!!!") == ""
