"""Integration tests for wishlist_service."""

import uuid

import pytest
from libs.common.errors import NotFoundError
from services.store_service.services.cart_service import CartService
from services.store_service.services.wishlist_service import WishlistService
from tests.factories import make_product, make_user


@pytest.fixture
def cart_service():
    return CartService()


@pytest.fixture
def wishlist_service(cart_service):
    return WishlistService(cart_service)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_wishlist_is_created_on_first_read(db_session, wishlist_service):
    user = await make_user(db_session)

    wishlist = await wishlist_service.get(db_session, user_id=user.id)

    assert wishlist.user_id == user.id
    assert wishlist.items == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_is_idempotent(db_session, wishlist_service):
    user = await make_user(db_session)
    product = await make_product(db_session)

    await wishlist_service.add(db_session, user_id=user.id, product_id=product.id)
    wishlist = await wishlist_service.add(
        db_session, user_id=user.id, product_id=product.id
    )

    assert [item.product_id for item in wishlist.items] == [product.id]
    assert wishlist.items[0].product.name == product.name


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_unknown_product(db_session, wishlist_service):
    user = await make_user(db_session)

    with pytest.raises(NotFoundError):
        await wishlist_service.add(
            db_session, user_id=user.id, product_id=uuid.uuid4()
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_remove_and_clear(db_session, wishlist_service):
    user = await make_user(db_session)
    first = await make_product(db_session)
    second = await make_product(db_session)
    await wishlist_service.add(db_session, user_id=user.id, product_id=first.id)
    await wishlist_service.add(db_session, user_id=user.id, product_id=second.id)

    wishlist = await wishlist_service.remove(
        db_session, user_id=user.id, product_id=first.id
    )
    assert [item.product_id for item in wishlist.items] == [second.id]

    wishlist = await wishlist_service.clear(db_session, user_id=user.id)
    assert wishlist.items == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_move_to_cart(db_session, wishlist_service, cart_service):
    user = await make_user(db_session)
    product = await make_product(db_session)
    await wishlist_service.add(db_session, user_id=user.id, product_id=product.id)

    wishlist = await wishlist_service.move_to_cart(
        db_session, user_id=user.id, product_id=product.id
    )

    assert wishlist.items == []
    cart = await cart_service.load_cart(db_session, user.id)
    assert [(item.product_id, item.quantity) for item in cart.items] == [
        (product.id, 1)
    ]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_move_to_cart_requires_wishlisted_product(db_session, wishlist_service):
    user = await make_user(db_session)
    product = await make_product(db_session)

    with pytest.raises(NotFoundError):
        await wishlist_service.move_to_cart(
            db_session, user_id=user.id, product_id=product.id
        )
