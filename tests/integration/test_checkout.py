"""Integration tests for checkout, cancellation and the order lifecycle.

Tests call the cart and order services directly against a per-test
SQLite database; no HTTP layer involved.
"""

import asyncio
import uuid
from datetime import date
from decimal import Decimal

import pytest
from libs.common.errors import (
    BusinessRuleViolation,
    ConflictError,
    EmptyCartError,
    ForbiddenError,
    IllegalStatusTransitionError,
    InsufficientStockError,
    NotFoundError,
    OrderNotCancellableError,
)
from services.store_service.models import (
    Cart,
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
    ProductListing,
)
from services.store_service.services import order_service as order_module
from services.store_service.services.cart_service import CartService
from services.store_service.services.inventory import available_stock
from services.store_service.services.order_numbers import (
    format_order_number,
    next_order_number,
)
from services.store_service.services.order_service import OrderService
from services.store_service.services.refs import ByListing, ByProduct
from sqlalchemy import func, select
from tests.factories import (
    actor_for,
    make_listing,
    make_product,
    make_seller,
    make_user,
    order_data,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def cart_service():
    return CartService()


@pytest.fixture
def order_service(notifier, cart_service):
    return OrderService(notifier, cart_service)


async def _stock(db, product_id):
    product = await db.get(Product, product_id, populate_existing=True)
    return product.stock


async def _listing_stock(db, listing_id):
    listing = await db.get(ProductListing, listing_id, populate_existing=True)
    return listing.stock_quantity


async def _place_order(db, cart_service, order_service, user, product, quantity=1):
    await cart_service.add_item(
        db, user_id=user.id, ref=ByProduct(product.id), quantity=quantity
    )
    return await order_service.create_order(db, user_id=user.id, data=order_data())


# ---------------------------------------------------------------------------
# create_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_decrements_stock_and_clears_cart(
    db_session, cart_service, order_service
):
    """Stock 5, quantity 3 -> stock 2, empty cart, one pending order."""
    user = await make_user(db_session)
    product = await make_product(db_session, stock=5, price=Decimal("100.00"))

    order = await _place_order(
        db_session, cart_service, order_service, user, product, quantity=3
    )

    assert order.order_status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.subtotal == Decimal("300.00")
    assert order.tax == Decimal("24.00")
    assert order.total == Decimal("324.00")
    assert order.shipping_cost == Decimal("0")
    assert order.discount == Decimal("0")
    assert len(order.items) == 1
    assert order.items[0].quantity == 3
    assert order.items[0].price_at_purchase == Decimal("100.00")

    assert await _stock(db_session, product.id) == 2
    cart = await cart_service.load_cart(db_session, user.id)
    assert cart.items == []
    assert cart.total == Decimal("0.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_short_stock_changes_nothing(
    db_session, cart_service, order_service
):
    """Stock 1, quantity 2 -> InsufficientStockError, stock and cart untouched."""
    user = await make_user(db_session)
    product = await make_product(db_session, stock=5)
    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(product.id), quantity=2
    )
    product = await db_session.get(Product, product.id)
    product.stock = 1
    await db_session.commit()

    with pytest.raises(InsufficientStockError):
        await order_service.create_order(
            db_session, user_id=user.id, data=order_data()
        )

    assert await _stock(db_session, product.id) == 1
    cart = await cart_service.load_cart(db_session, user.id)
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 2
    orders = (await db_session.execute(select(func.count(Order.id)))).scalar_one()
    assert orders == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_of_empty_cart_fails(db_session, order_service):
    user = await make_user(db_session)

    with pytest.raises(EmptyCartError):
        await order_service.create_order(
            db_session, user_id=user.id, data=order_data()
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_copies_shipping_into_billing(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    product = await make_product(db_session)

    order = await _place_order(db_session, cart_service, order_service, user, product)

    assert order.billing_address == order.shipping_address
    assert order.shipping_address["city"] == "Springfield"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_sends_confirmation(
    db_session, cart_service, order_service, notifier
):
    user = await make_user(db_session)
    product = await make_product(db_session)

    order = await _place_order(db_session, cart_service, order_service, user, product)

    assert notifier.subjects_for(user.email) == [
        f"Order Confirmation - {order.order_number}"
    ]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_numbers_follow_daily_format(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    product = await make_product(db_session, stock=10)

    first = await _place_order(db_session, cart_service, order_service, user, product)
    second = await _place_order(db_session, cart_service, order_service, user, product)

    prefix, day, sequence = first.order_number.split("-")
    assert prefix == "ORD"
    assert len(day) == 8
    assert sequence == "0001"
    assert second.order_number == f"ORD-{day}-0002"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_snapshot_survives_product_changes(
    db_session, cart_service, order_service
):
    """Later product edits never rewrite an existing order."""
    user = await make_user(db_session)
    product = await make_product(
        db_session, name="Desk Lamp", slug="desk-lamp", price=Decimal("40.00")
    )
    order = await _place_order(db_session, cart_service, order_service, user, product)

    product = await db_session.get(Product, product.id)
    product.name = "Desk Lamp v2"
    product.price = Decimal("55.00")
    await db_session.commit()

    reloaded = await order_service.load_order(db_session, order.id)
    assert reloaded.items[0].product_name == "Desk Lamp"
    assert reloaded.items[0].price_at_purchase == Decimal("40.00")
    assert reloaded.total == order.total


@pytest.mark.asyncio
@pytest.mark.integration
async def test_listing_lines_draw_stock_from_the_listing(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    _, seller = await make_seller(db_session)
    product = await make_product(db_session, stock=10)
    listing = await make_listing(
        db_session, product.id, seller.id, stock_quantity=5, price=Decimal("80.00")
    )

    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByListing(listing.id), quantity=2
    )
    order = await order_service.create_order(
        db_session, user_id=user.id, data=order_data()
    )

    assert order.items[0].listing_id == listing.id
    assert order.items[0].seller_id == seller.id
    assert order.items[0].price_at_purchase == Decimal("80.00")
    assert await _listing_stock(db_session, listing.id) == 3
    assert await _stock(db_session, product.id) == 10


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_concurrent_checkouts_create_one_order(
    db_session, session_factory, cart_service, order_service
):
    """Two checkouts of the same cart: one order, the other sees an empty cart."""
    user = await make_user(db_session)
    product = await make_product(db_session, stock=5)
    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(product.id), quantity=1
    )
    # Release the fixture session's lock before the racers start
    await db_session.commit()

    async def checkout():
        async with session_factory() as session:
            return await order_service.create_order(
                session, user_id=user.id, data=order_data()
            )

    results = await asyncio.gather(checkout(), checkout(), return_exceptions=True)

    orders = [result for result in results if isinstance(result, Order)]
    failures = [result for result in results if isinstance(result, Exception)]
    assert len(orders) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], EmptyCartError)
    assert await _stock(db_session, product.id) == 4


@pytest.mark.asyncio
@pytest.mark.integration
async def test_concurrent_number_allocation_is_unique(session_factory):
    day = date(2024, 3, 9)

    async def allocate():
        async with session_factory() as session:
            number = await next_order_number(session, day)
            await session.commit()
            return number

    numbers = await asyncio.gather(*(allocate() for _ in range(5)))

    assert sorted(numbers) == [format_order_number(day, n) for n in range(1, 6)]


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_restores_stock(db_session, cart_service, order_service):
    user = await make_user(db_session)
    product = await make_product(db_session, stock=5)
    order = await _place_order(
        db_session, cart_service, order_service, user, product, quantity=3
    )

    cancelled = await order_service.cancel_order(
        db_session, order_id=order.id, user_id=user.id, reason="Changed my mind"
    )

    assert cancelled.order_status == OrderStatus.CANCELLED
    assert cancelled.cancellation_reason == "Changed my mind"
    assert cancelled.cancelled_at is not None
    assert all(item.status == OrderStatus.CANCELLED for item in cancelled.items)
    assert await _stock(db_session, product.id) == 5


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_restores_listing_stock(db_session, cart_service, order_service):
    user = await make_user(db_session)
    _, seller = await make_seller(db_session)
    product = await make_product(db_session, stock=10)
    listing = await make_listing(db_session, product.id, seller.id, stock_quantity=2)
    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByListing(listing.id), quantity=2
    )
    order = await order_service.create_order(
        db_session, user_id=user.id, data=order_data()
    )
    sold_out = await db_session.get(ProductListing, listing.id, populate_existing=True)
    assert sold_out.stock_quantity == 0
    assert sold_out.is_available is False

    await order_service.cancel_order(db_session, order_id=order.id, user_id=user.id)

    restored = await db_session.get(ProductListing, listing.id, populate_existing=True)
    assert restored.stock_quantity == 2
    assert restored.is_available is True
    assert await _stock(db_session, product.id) == 10


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_while_processing_is_rejected(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    admin = await make_user(db_session, role="admin")
    product = await make_product(db_session, stock=5)
    order = await _place_order(db_session, cart_service, order_service, user, product)
    await order_service.update_order_status(
        db_session,
        order_id=order.id,
        status=OrderStatus.PROCESSING,
        actor=actor_for(admin),
    )

    with pytest.raises(OrderNotCancellableError):
        await order_service.cancel_order(
            db_session, order_id=order.id, user_id=user.id
        )

    reloaded = await order_service.load_order(db_session, order.id)
    assert reloaded.order_status == OrderStatus.PROCESSING
    assert await _stock(db_session, product.id) == 4


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_someone_elses_order_is_not_found(
    db_session, cart_service, order_service
):
    owner = await make_user(db_session)
    stranger = await make_user(db_session)
    product = await make_product(db_session)
    order = await _place_order(db_session, cart_service, order_service, owner, product)

    with pytest.raises(NotFoundError):
        await order_service.cancel_order(
            db_session, order_id=order.id, user_id=stranger.id
        )


# ---------------------------------------------------------------------------
# Status updates
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_shipping_stamps_items_and_tracking(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    admin = await make_user(db_session, role="admin")
    product = await make_product(db_session)
    order = await _place_order(db_session, cart_service, order_service, user, product)

    shipped = await order_service.update_order_status(
        db_session,
        order_id=order.id,
        status=OrderStatus.SHIPPED,
        actor=actor_for(admin),
        tracking_number="TRACK-1",
    )

    assert shipped.order_status == OrderStatus.SHIPPED
    assert shipped.items[0].status == OrderStatus.SHIPPED
    assert shipped.items[0].tracking_number == "TRACK-1"
    assert shipped.items[0].shipped_at is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_cannot_move_backwards(db_session, cart_service, order_service):
    user = await make_user(db_session)
    admin = await make_user(db_session, role="admin")
    product = await make_product(db_session)
    order = await _place_order(db_session, cart_service, order_service, user, product)
    actor = actor_for(admin)
    await order_service.update_order_status(
        db_session, order_id=order.id, status=OrderStatus.SHIPPED, actor=actor
    )

    with pytest.raises(IllegalStatusTransitionError):
        await order_service.update_order_status(
            db_session, order_id=order.id, status=OrderStatus.PENDING, actor=actor
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_cancel_of_shipped_order_restores_stock(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    admin = await make_user(db_session, role="admin")
    product = await make_product(db_session, stock=5)
    order = await _place_order(
        db_session, cart_service, order_service, user, product, quantity=2
    )
    actor = actor_for(admin)
    await order_service.update_order_status(
        db_session, order_id=order.id, status=OrderStatus.SHIPPED, actor=actor
    )

    cancelled = await order_service.update_order_status(
        db_session, order_id=order.id, status=OrderStatus.CANCELLED, actor=actor
    )

    assert cancelled.order_status == OrderStatus.CANCELLED
    assert await _stock(db_session, product.id) == 5


@pytest.mark.asyncio
@pytest.mark.integration
async def test_only_sellers_with_items_may_update(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    seller_user, seller = await make_seller(db_session)
    other_user, other_seller = await make_seller(db_session)
    product = await make_product(db_session, seller_id=seller.id)
    order = await _place_order(db_session, cart_service, order_service, user, product)

    with pytest.raises(ForbiddenError):
        await order_service.update_order_status(
            db_session,
            order_id=order.id,
            status=OrderStatus.PROCESSING,
            actor=actor_for(other_user, other_seller),
        )

    updated = await order_service.update_order_status(
        db_session,
        order_id=order.id,
        status=OrderStatus.PROCESSING,
        actor=actor_for(seller_user, seller),
    )
    assert updated.order_status == OrderStatus.PROCESSING

    orders, total = await order_service.get_seller_orders(
        db_session, seller_id=seller.id
    )
    assert total == 1
    assert orders[0].id == order.id
    _, other_total = await order_service.get_seller_orders(
        db_session, seller_id=other_seller.id
    )
    assert other_total == 0


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_mark_as_paid_confirms_and_replays_idempotently(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    product = await make_product(db_session)
    order = await _place_order(db_session, cart_service, order_service, user, product)

    paid = await order_service.mark_as_paid(
        db_session, order_id=order.id, transaction_id="txn_1"
    )
    replay = await order_service.mark_as_paid(
        db_session, order_id=order.id, transaction_id="txn_1"
    )

    assert paid.payment_status == PaymentStatus.COMPLETED
    assert paid.order_status == OrderStatus.CONFIRMED
    assert paid.paid_at is not None
    assert replay.transaction_id == "txn_1"

    with pytest.raises(ConflictError):
        await order_service.mark_as_paid(
            db_session, order_id=order.id, transaction_id="txn_2"
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancelled_order_cannot_be_paid(db_session, cart_service, order_service):
    user = await make_user(db_session)
    product = await make_product(db_session)
    order = await _place_order(db_session, cart_service, order_service, user, product)
    await order_service.cancel_order(db_session, order_id=order.id, user_id=user.id)

    with pytest.raises(BusinessRuleViolation) as exc_info:
        await order_service.mark_as_paid(
            db_session, order_id=order.id, transaction_id="txn_1"
        )
    assert exc_info.value.code == "ORDER_NOT_PAYABLE"


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_visibility(db_session, cart_service, order_service):
    owner = await make_user(db_session)
    stranger = await make_user(db_session)
    support = await make_user(db_session, role="support")
    product = await make_product(db_session, stock=10)
    order = await _place_order(db_session, cart_service, order_service, owner, product)

    found = await order_service.get_order(
        db_session, order_id=order.id, actor=actor_for(owner)
    )
    assert found.id == order.id
    assert (
        await order_service.get_order(
            db_session, order_id=order.id, actor=actor_for(support)
        )
    ).id == order.id
    with pytest.raises(NotFoundError):
        await order_service.get_order(
            db_session, order_id=order.id, actor=actor_for(stranger)
        )
    with pytest.raises(NotFoundError):
        await order_service.load_order(db_session, uuid.uuid4())


@pytest.mark.asyncio
@pytest.mark.integration
async def test_user_orders_filter_by_status(db_session, cart_service, order_service):
    user = await make_user(db_session)
    product = await make_product(db_session, stock=10)
    first = await _place_order(db_session, cart_service, order_service, user, product)
    await _place_order(db_session, cart_service, order_service, user, product)
    await order_service.cancel_order(db_session, order_id=first.id, user_id=user.id)

    orders, total = await order_service.get_user_orders(db_session, user_id=user.id)
    cancelled, cancelled_total = await order_service.get_user_orders(
        db_session, user_id=user.id, status=OrderStatus.CANCELLED
    )

    assert total == 2
    assert len(orders) == 2
    assert cancelled_total == 1
    assert cancelled[0].id == first.id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_every_cart_write_bumps_the_version(
    db_session, cart_service, order_service
):
    user = await make_user(db_session)
    product = await make_product(db_session)
    cart = await cart_service.get_or_create(db_session, user.id)
    created_version = cart.version

    cart = await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(product.id), quantity=1
    )
    assert cart.version == created_version + 1

    cart = await cart_service.update_item_quantity(
        db_session, user_id=user.id, ref=ByProduct(product.id), quantity=1
    )
    assert cart.version == created_version + 2

    await order_service.create_order(db_session, user_id=user.id, data=order_data())

    refreshed = await db_session.get(Cart, cart.id, populate_existing=True)
    assert refreshed.version > created_version + 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_edit_committed_during_checkout_is_kept(
    db_session, session_factory, cart_service, order_service, monkeypatch
):
    """A line added after checkout read the cart makes checkout retry."""
    user = await make_user(db_session)
    lamp = await make_product(db_session, price=Decimal("100.00"), stock=5)
    shade = await make_product(db_session, price=Decimal("50.00"), stock=5)
    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(lamp.id), quantity=1
    )

    async def check_then_edit(db, ref):
        stock = await available_stock(db, ref)
        # End the read transaction so another session can write the cart
        await db.commit()
        async with session_factory() as other:
            await cart_service.add_item(
                other, user_id=user.id, ref=ByProduct(shade.id), quantity=1
            )
        return stock

    monkeypatch.setattr(order_module, "available_stock", check_then_edit)

    with pytest.raises(ConflictError) as exc_info:
        await order_service.create_order(
            db_session, user_id=user.id, data=order_data()
        )
    assert exc_info.value.field == "cart"

    cart = await cart_service.load_cart(db_session, user.id)
    assert sorted((item.price, item.quantity) for item in cart.items) == [
        (Decimal("50.00"), 1),
        (Decimal("100.00"), 1),
    ]
    assert cart.subtotal == Decimal("150.00")
    assert cart.total == Decimal("162.00")
    assert await _stock(db_session, lamp.id) == 5
    orders = (await db_session.execute(select(func.count(Order.id)))).scalar_one()
    assert orders == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stale_cart_write_after_checkout_is_rejected(
    db_session, session_factory, cart_service, order_service
):
    user = await make_user(db_session)
    product = await make_product(db_session, stock=5)
    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(product.id), quantity=1
    )
    await db_session.commit()

    async with session_factory() as other:
        stale = await cart_service.load_cart(other, user.id)
        await other.commit()

        await order_service.create_order(
            db_session, user_id=user.id, data=order_data()
        )

        stale.items[0].quantity = 4
        with pytest.raises(ConflictError):
            await cart_service._save(other, stale)

    cart = await cart_service.load_cart(db_session, user.id)
    assert cart.items == []
    assert cart.total == Decimal("0.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stock_sold_after_precheck_rolls_back_checkout(
    db_session, cart_service, order_service, monkeypatch
):
    """The conditional decrement still refuses when the pre-check was stale."""
    user = await make_user(db_session)
    product = await make_product(db_session, stock=5, price=Decimal("100.00"))
    await cart_service.add_item(
        db_session, user_id=user.id, ref=ByProduct(product.id), quantity=2
    )
    # Another buyer takes all but one unit after the pre-check read 5
    product = await db_session.get(Product, product.id)
    product.stock = 1
    await db_session.commit()

    async def stale_check(db, ref):
        return 5

    monkeypatch.setattr(order_module, "available_stock", stale_check)

    with pytest.raises(InsufficientStockError):
        await order_service.create_order(
            db_session, user_id=user.id, data=order_data()
        )

    assert await _stock(db_session, product.id) == 1
    cart = await cart_service.load_cart(db_session, user.id)
    assert [(item.product_id, item.quantity) for item in cart.items] == [
        (product.id, 2)
    ]
    assert cart.total == Decimal("216.00")
    orders = (await db_session.execute(select(func.count(Order.id)))).scalar_one()
    assert orders == 0
