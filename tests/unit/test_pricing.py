"""Unit tests for cart pricing and cart line references."""

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError
from services.store_service.schemas import CartAddRequest, ProductImageIn
from services.store_service.services.cart_service import compute_totals, quantize
from services.store_service.services.catalog_service import build_images
from services.store_service.services.refs import ByListing, ByProduct, ref_from_path

# ---------------------------------------------------------------------------
# compute_totals
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_totals_for_two_units_at_one_hundred():
    """2 x 100.00 at 8% tax -> 200.00 / 16.00 / 216.00."""
    subtotal, tax, total = compute_totals([(Decimal("100.00"), 2)], Decimal("0.08"))

    assert subtotal == Decimal("200.00")
    assert tax == Decimal("16.00")
    assert total == Decimal("216.00")


@pytest.mark.unit
def test_totals_for_empty_cart_are_zero():
    subtotal, tax, total = compute_totals([], Decimal("0.08"))

    assert (subtotal, tax, total) == (Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))


@pytest.mark.unit
def test_totals_sum_multiple_lines():
    subtotal, tax, total = compute_totals(
        [(Decimal("19.99"), 3), (Decimal("5.01"), 1)], Decimal("0.08")
    )

    assert subtotal == Decimal("64.98")
    assert tax == Decimal("5.20")
    assert total == subtotal + tax


@pytest.mark.unit
def test_tax_rounds_half_up():
    """0.10 at 5% is exactly 0.005, which rounds up to a cent."""
    _, tax, total = compute_totals([(Decimal("0.10"), 1)], Decimal("0.05"))

    assert tax == Decimal("0.01")
    assert total == Decimal("0.11")


@pytest.mark.unit
def test_quantize_keeps_two_places():
    assert quantize(Decimal("2.345")) == Decimal("2.35")
    assert str(quantize(Decimal("7"))) == "7.00"


# ---------------------------------------------------------------------------
# Line references
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_ref_from_path_defaults_to_product():
    item_id = uuid.uuid4()

    assert ref_from_path(item_id, "product") == ByProduct(item_id)
    assert ref_from_path(item_id, "listing") == ByListing(item_id)


@pytest.mark.unit
def test_cart_request_requires_exactly_one_reference():
    with pytest.raises(ValidationError):
        CartAddRequest(quantity=1)
    with pytest.raises(ValidationError):
        CartAddRequest(product_id=uuid.uuid4(), listing_id=uuid.uuid4())


@pytest.mark.unit
def test_cart_request_resolves_listing_reference():
    listing_id = uuid.uuid4()

    request = CartAddRequest(listing_id=listing_id, quantity=2)

    assert request.to_ref() == ByListing(listing_id)


@pytest.mark.unit
def test_cart_request_rejects_zero_quantity():
    with pytest.raises(ValidationError):
        CartAddRequest(product_id=uuid.uuid4(), quantity=0)


# ---------------------------------------------------------------------------
# Product images
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_build_images_keeps_single_primary():
    images = build_images(
        [
            ProductImageIn(url="https://cdn.test/a.jpg"),
            ProductImageIn(url="https://cdn.test/b.jpg", is_primary=True),
            ProductImageIn(url="https://cdn.test/c.jpg", is_primary=True),
        ]
    )

    assert [image.is_primary for image in images] == [False, True, False]
    assert [image.sort_order for image in images] == [0, 1, 2]


@pytest.mark.unit
def test_build_images_defaults_primary_to_first():
    images = build_images(
        [ProductImageIn(url="https://cdn.test/a.jpg"), ProductImageIn(url="https://cdn.test/b.jpg")]
    )

    assert images[0].is_primary is True
    assert images[1].is_primary is False
