"""Order placement and fulfilment.

`create_order` turns the user's cart into an order snapshot. Claiming the
cart, allocating the order number, inserting the order, decrementing stock
and clearing the cart all commit in one transaction; the confirmation email
goes out after the commit and never fails the order.
"""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import utc_now
from libs.common.emails.notifier import EmailNotifier
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
from libs.common.logging import get_logger
from services.identity_service.models import User
from services.store_service.models import (
    Cart,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from services.store_service.schemas import OrderCreate
from services.store_service.services.cart_service import CartService, stock_ref_for
from services.store_service.services.inventory import (
    available_stock,
    decrement_stock,
    restore_stock,
)
from services.store_service.services.order_numbers import next_order_number
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------------------------

FULFILMENT_FLOW = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)
USER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})
ADMIN_CANCELLABLE = frozenset(
    {
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
    }
)
RETURNABLE = frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED})
UNPAYABLE = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})


def is_legal_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Forward along the fulfilment flow (skips allowed), or to a terminal state."""
    if new == OrderStatus.CANCELLED:
        return current in ADMIN_CANCELLABLE
    if new == OrderStatus.RETURNED:
        return current in RETURNABLE
    if current in FULFILMENT_FLOW and new in FULFILMENT_FLOW:
        return FULFILMENT_FLOW.index(new) > FULFILMENT_FLOW.index(current)
    return False


class OrderService:
    """Cart-to-order checkout and the order status lifecycle."""

    def __init__(
        self,
        notifier: EmailNotifier,
        cart_service: CartService,
        settings: Optional[Settings] = None,
    ):
        self.notifier = notifier
        self.cart_service = cart_service
        self.settings = settings or get_settings()

    async def load_order(self, db: AsyncSession, order_id: uuid.UUID) -> Order:
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def create_order(
        self, db: AsyncSession, *, user_id: uuid.UUID, data: OrderCreate
    ) -> Order:
        cart = await self.cart_service.load_cart(db, user_id)
        if cart is None or not cart.items:
            raise EmptyCartError()

        # Fail fast before any write
        for item in cart.items:
            stock = await available_stock(db, stock_ref_for(item))
            if stock < item.quantity:
                raise InsufficientStockError(item.product.name)

        try:
            order = await self._place(db, cart, user_id=user_id, data=data)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Order %s placed by user %s (total=%s, items=%d)",
            order.order_number,
            user_id,
            order.total,
            len(order.items),
        )
        await self._send_confirmation(db, order)
        return await self.load_order(db, order.id)

    async def _place(
        self,
        db: AsyncSession,
        cart: Cart,
        *,
        user_id: uuid.UUID,
        data: OrderCreate,
    ) -> Order:
        # Claim the cart: the versioned UPDATE matches no row if any other
        # checkout or cart edit committed since the cart was loaded
        cart.updated_at = utc_now()
        try:
            await db.flush()
        except StaleDataError:
            await db.rollback()
            current = await self.cart_service.load_cart(db, user_id)
            if current is None or not current.items:
                raise EmptyCartError()
            raise ConflictError(
                "Cart changed during checkout, please retry", field="cart"
            )

        order_items = []
        for position, item in enumerate(cart.items):
            primary_image = item.product.primary_image
            order_items.append(
                OrderItem(
                    product_id=item.product_id,
                    listing_id=item.listing_id,
                    variant_id=item.variant_id,
                    seller_id=item.seller_id,
                    product_name=item.product.name,
                    variant_name=item.variant.display_name if item.variant else None,
                    image_url=primary_image.url if primary_image else None,
                    quantity=item.quantity,
                    price_at_purchase=item.price,
                    position=position,
                    status=OrderStatus.PENDING,
                )
            )

        shipping_address = data.shipping_address.model_dump()
        billing_address = (
            data.billing_address.model_dump()
            if data.billing_address
            else dict(shipping_address)
        )

        order = Order(
            order_number=await next_order_number(db),
            user_id=user_id,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=data.payment.method,
            payment_status=PaymentStatus.PENDING,
            subtotal=cart.subtotal,
            tax=cart.tax,
            total=cart.total,
            order_status=OrderStatus.PENDING,
            notes=data.notes,
            items=order_items,
        )
        db.add(order)
        await db.flush()

        for item in cart.items:
            if not await decrement_stock(db, stock_ref_for(item), item.quantity):
                raise InsufficientStockError(item.product.name)

        cart.items.clear()
        self.cart_service.recalculate(cart)
        await db.flush()
        return order

    async def _send_confirmation(self, db: AsyncSession, order: Order) -> None:
        try:
            email = (
                await db.execute(select(User.email).where(User.id == order.user_id))
            ).scalar_one_or_none()
            if email is None:
                return
            await self.notifier.send_order_confirmation(
                email,
                {
                    "order_id": order.order_number,
                    "total": order.total,
                    "status": order.order_status.value,
                },
            )
        except Exception:
            logger.exception(
                "Order confirmation for %s could not be sent", order.order_number
            )

    # ------------------------------------------------------------------
    # Cancellation and status changes
    # ------------------------------------------------------------------

    async def _cancel(
        self,
        db: AsyncSession,
        order: Order,
        *,
        allowed_from: frozenset,
        reason: Optional[str],
    ) -> None:
        """Move to cancelled and give stock back to the entity it came from."""
        now = utc_now()
        claimed = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.order_status.in_(allowed_from))
            .values(
                order_status=OrderStatus.CANCELLED,
                cancelled_at=now,
                cancellation_reason=reason,
            )
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            raise OrderNotCancellableError()

        for item in order.items:
            await restore_stock(db, stock_ref_for(item), item.quantity)
            item.status = OrderStatus.CANCELLED

        logger.info("Order %s cancelled, stock restored", order.order_number)

    async def cancel_order(
        self,
        db: AsyncSession,
        *,
        order_id: uuid.UUID,
        user_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> Order:
        order = await self.load_order(db, order_id)
        if order.user_id != user_id:
            raise NotFoundError("Order not found")
        if order.order_status not in USER_CANCELLABLE:
            raise OrderNotCancellableError()

        await self._cancel(db, order, allowed_from=USER_CANCELLABLE, reason=reason)
        await db.commit()
        return await self.load_order(db, order.id)

    async def update_order_status(
        self,
        db: AsyncSession,
        *,
        order_id: uuid.UUID,
        status: OrderStatus,
        actor: AuthUser,
        tracking_number: Optional[str] = None,
    ) -> Order:
        order = await self.load_order(db, order_id)

        if not actor.is_admin:
            owns_item = actor.seller_id is not None and any(
                item.seller_id == actor.seller_id for item in order.items
            )
            if not owns_item:
                raise ForbiddenError("Not authorized to update this order")

        current = order.order_status
        if status == current:
            return order
        if not is_legal_transition(current, status):
            raise IllegalStatusTransitionError(current.value, status.value)

        if status == OrderStatus.CANCELLED:
            await self._cancel(
                db, order, allowed_from=frozenset({current}), reason=None
            )
            await db.commit()
            return await self.load_order(db, order.id)

        now = utc_now()
        values = {"order_status": status}
        if status == OrderStatus.DELIVERED:
            values["delivered_at"] = now
        claimed = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.order_status == current)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            raise ConflictError("Order status changed concurrently", field="status")

        for item in order.items:
            item.status = status
            if status == OrderStatus.SHIPPED:
                item.shipped_at = now
                if tracking_number:
                    item.tracking_number = tracking_number
            elif status == OrderStatus.DELIVERED:
                item.delivered_at = now

        await db.commit()
        logger.info(
            "Order %s moved %s -> %s by %s",
            order.order_number,
            current.value,
            status.value,
            actor.user_id,
        )
        return await self.load_order(db, order.id)

    async def mark_as_paid(
        self, db: AsyncSession, *, order_id: uuid.UUID, transaction_id: str
    ) -> Order:
        order = await self.load_order(db, order_id)

        if order.order_status in UNPAYABLE:
            raise BusinessRuleViolation(
                f"Cannot mark a {order.order_status.value} order as paid",
                code="ORDER_NOT_PAYABLE",
            )
        if order.payment_status == PaymentStatus.COMPLETED:
            if order.transaction_id == transaction_id:
                return order
            raise ConflictError("Order is already paid", field="transaction_id")

        order.payment_status = PaymentStatus.COMPLETED
        order.transaction_id = transaction_id
        order.paid_at = utc_now()
        if order.order_status == OrderStatus.PENDING:
            order.order_status = OrderStatus.CONFIRMED
            for item in order.items:
                if item.status == OrderStatus.PENDING:
                    item.status = OrderStatus.CONFIRMED

        await db.commit()
        logger.info("Order %s paid (transaction %s)", order.order_number, transaction_id)
        return await self.load_order(db, order.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _page(
        self,
        db: AsyncSession,
        conditions: list,
        *,
        page: int,
        limit: int,
    ) -> tuple[list[Order], int]:
        total = (
            await db.execute(select(func.count(Order.id)).where(*conditions))
        ).scalar_one()
        result = await db.execute(
            select(Order)
            .where(*conditions)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.order_number.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    async def get_user_orders(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 10,
        status: Optional[OrderStatus] = None,
    ) -> tuple[list[Order], int]:
        conditions = [Order.user_id == user_id]
        if status is not None:
            conditions.append(Order.order_status == status)
        return await self._page(db, conditions, page=page, limit=limit)

    async def get_order(
        self, db: AsyncSession, *, order_id: uuid.UUID, actor: AuthUser
    ) -> Order:
        order = await self.load_order(db, order_id)
        if order.user_id == actor.user_id or actor.role in ("admin", "support"):
            return order
        if actor.seller_id is not None and any(
            item.seller_id == actor.seller_id for item in order.items
        ):
            return order
        raise NotFoundError("Order not found")

    async def get_seller_orders(
        self,
        db: AsyncSession,
        *,
        seller_id: uuid.UUID,
        page: int = 1,
        limit: int = 10,
        status: Optional[OrderStatus] = None,
    ) -> tuple[list[Order], int]:
        conditions = [Order.items.any(OrderItem.seller_id == seller_id)]
        if status is not None:
            conditions.append(Order.order_status == status)
        return await self._page(db, conditions, page=page, limit=limit)
