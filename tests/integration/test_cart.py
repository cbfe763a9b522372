"""Integration tests for cart_service."""

import uuid
from decimal import Decimal

import pytest
from libs.common.errors import (
    BusinessRuleViolation,
    InsufficientStockError,
    NotFoundError,
)
from services.store_service.models import Product
from services.store_service.services.cart_service import CartService
from services.store_service.services.refs import ByListing, ByProduct
from tests.factories import make_listing, make_product, make_seller, make_user


@pytest.fixture
def cart_service():
    return CartService()


# ---------------------------------------------------------------------------
# add_item
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_item_creates_cart_with_totals(db_session, cart_service):
    user = await make_user(db_session)
    product = await make_product(db_session, price=Decimal("100.00"))

    cart = await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(product.id), quantity=2
    )

    assert len(cart.items) == 1
    assert cart.subtotal == Decimal("200.00")
    assert cart.tax == Decimal("16.00")
    assert cart.total == Decimal("216.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_adding_again_increments_and_keeps_first_price(db_session, cart_service):
    user = await make_user(db_session)
    product = await make_product(db_session, price=Decimal("10.00"))
    ref = ByProduct(product.id)
    await cart_service.add_item(db_session, user_id=user.id, ref=ref, quantity=1)

    product = await db_session.get(Product, product.id)
    product.price = Decimal("12.00")
    await db_session.commit()
    cart = await cart_service.add_item(db_session, user_id=user.id, ref=ref, quantity=2)

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 3
    assert cart.items[0].price == Decimal("10.00")
    assert cart.subtotal == Decimal("30.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_counts_quantity_already_in_cart(db_session, cart_service):
    user = await make_user(db_session)
    product = await make_product(db_session, stock=3)
    ref = ByProduct(product.id)
    await cart_service.add_item(db_session, user_id=user.id, ref=ref, quantity=2)

    with pytest.raises(InsufficientStockError):
        await cart_service.add_item(db_session, user_id=user.id, ref=ref, quantity=2)

    cart = await cart_service.load_cart(db_session, user.id)
    assert cart.items[0].quantity == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_unknown_or_inactive_product_fails(db_session, cart_service):
    user = await make_user(db_session)
    hidden = await make_product(db_session, is_active=False)

    with pytest.raises(NotFoundError):
        await cart_service.add_item(
            db_session, user_id=user.id, ref=ByProduct(uuid.uuid4())
        )
    with pytest.raises(BusinessRuleViolation):
        await cart_service.add_item(
            db_session, user_id=user.id, ref=ByProduct(hidden.id)
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_listing_and_product_lines_are_separate(db_session, cart_service):
    user = await make_user(db_session)
    _, seller = await make_seller(db_session)
    product = await make_product(db_session, price=Decimal("100.00"))
    listing = await make_listing(
        db_session, product.id, seller.id, price=Decimal("90.00")
    )

    await cart_service.add_item(db_session, user_id=user.id, ref=ByProduct(product.id))
    cart = await cart_service.add_item(
        db_session, user_id=user.id, ref=ByListing(listing.id)
    )

    assert len(cart.items) == 2
    listing_line = cart_service.find_line(cart, ByListing(listing.id))
    assert listing_line.price == Decimal("90.00")
    assert listing_line.seller_id == seller.id
    assert cart_service.find_line(cart, ByProduct(product.id)).listing_id is None
    assert cart.subtotal == Decimal("190.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unavailable_listing_is_rejected(db_session, cart_service):
    user = await make_user(db_session)
    _, seller = await make_seller(db_session)
    product = await make_product(db_session)
    listing = await make_listing(
        db_session, product.id, seller.id, stock_quantity=0, is_available=False
    )

    with pytest.raises(BusinessRuleViolation):
        await cart_service.add_item(
            db_session, user_id=user.id, ref=ByListing(listing.id)
        )


# ---------------------------------------------------------------------------
# update / remove / clear
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_quantity_rechecks_stock(db_session, cart_service):
    user = await make_user(db_session)
    product = await make_product(db_session, stock=4, price=Decimal("5.00"))
    ref = ByProduct(product.id)
    await cart_service.add_item(db_session, user_id=user.id, ref=ref)

    cart = await cart_service.update_item_quantity(
        db_session, user_id=user.id, ref=ref, quantity=4
    )
    assert cart.items[0].quantity == 4
    assert cart.subtotal == Decimal("20.00")

    with pytest.raises(InsufficientStockError):
        await cart_service.update_item_quantity(
            db_session, user_id=user.id, ref=ref, quantity=5
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_to_zero_removes_line(db_session, cart_service):
    user = await make_user(db_session)
    product = await make_product(db_session)
    ref = ByProduct(product.id)
    await cart_service.add_item(db_session, user_id=user.id, ref=ref)

    cart = await cart_service.update_item_quantity(
        db_session, user_id=user.id, ref=ref, quantity=0
    )

    assert cart.items == []
    assert cart.total == Decimal("0.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_missing_line_is_not_found(db_session, cart_service):
    user = await make_user(db_session)

    with pytest.raises(NotFoundError):
        await cart_service.update_item_quantity(
            db_session, user_id=user.id, ref=ByProduct(uuid.uuid4()), quantity=1
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_remove_and_clear(db_session, cart_service):
    user = await make_user(db_session)
    first = await make_product(db_session)
    second = await make_product(db_session)
    await cart_service.add_item(db_session, user_id=user.id, ref=ByProduct(first.id))
    await cart_service.add_item(db_session, user_id=user.id, ref=ByProduct(second.id))

    cart = await cart_service.remove_item(
        db_session, user_id=user.id, ref=ByProduct(first.id)
    )
    assert [item.product_id for item in cart.items] == [second.id]

    cart = await cart_service.clear(db_session, user_id=user.id)
    assert cart.items == []
    assert cart.subtotal == Decimal("0.00")


# ---------------------------------------------------------------------------
# sync
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sync_merges_and_skips_bad_entries(db_session, cart_service):
    user = await make_user(db_session)
    in_stock = await make_product(db_session, stock=10, price=Decimal("10.00"))
    scarce = await make_product(db_session, stock=1)
    hidden = await make_product(db_session, is_active=False)
    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(in_stock.id), quantity=1
    )

    cart = await cart_service.sync(
        db_session,
        user_id=user.id,
        items=[
            (ByProduct(in_stock.id), 2),
            (ByProduct(scarce.id), 5),
            (ByProduct(hidden.id), 1),
            (ByProduct(uuid.uuid4()), 1),
        ],
    )

    assert len(cart.items) == 1
    assert cart.items[0].product_id == in_stock.id
    assert cart.items[0].quantity == 3
    assert cart.subtotal == Decimal("30.00")
