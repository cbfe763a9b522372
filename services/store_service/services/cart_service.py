"""Cart operations: per-user line items with derived subtotal, tax and total."""

import uuid
from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    AppError,
    BusinessRuleViolation,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
)
from libs.common.logging import get_logger
from services.store_service.models import Cart, CartItem, Product, ProductListing
from services.store_service.services.inventory import StockRef
from services.store_service.services.refs import ByListing, ByProduct, ItemRef
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

logger = get_logger(__name__)

CENTS = Decimal("0.01")


def quantize(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_totals(
    lines: Iterable[tuple[Decimal, int]], tax_rate: Decimal
) -> tuple[Decimal, Decimal, Decimal]:
    """Return (subtotal, tax, total) for (unit price, quantity) pairs.

    >>> compute_totals([(Decimal("100"), 2)], Decimal("0.08"))
    (Decimal('200.00'), Decimal('16.00'), Decimal('216.00'))
    """
    subtotal = quantize(sum((price * qty for price, qty in lines), Decimal("0")))
    tax = quantize(subtotal * tax_rate)
    return subtotal, tax, subtotal + tax


def stock_ref_for(line) -> StockRef:
    """The stock-holding entity for a cart or order line."""
    return StockRef(product_id=line.product_id, listing_id=line.listing_id)


@dataclass
class Sellable:
    """A resolved cart reference with its live price and stock."""

    product: Product
    listing: Optional[ProductListing]
    price: Decimal
    stock: int

    @property
    def listing_id(self) -> Optional[uuid.UUID]:
        return self.listing.id if self.listing else None


class CartService:
    """Per-user cart; every mutation re-derives and persists the totals."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Loading / totals
    # ------------------------------------------------------------------

    async def load_cart(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[Cart]:
        result = await db.execute(
            select(Cart)
            .where(Cart.user_id == user_id)
            .options(
                selectinload(Cart.items)
                .selectinload(CartItem.product)
                .selectinload(Product.images),
                selectinload(Cart.items).selectinload(CartItem.listing),
                selectinload(Cart.items).selectinload(CartItem.variant),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, user_id: uuid.UUID) -> Cart:
        cart = await self.load_cart(db, user_id)
        if cart is not None:
            return cart

        db.add(
            Cart(
                user_id=user_id,
                expires_at=utc_now() + timedelta(days=self.settings.CART_EXPIRY_DAYS),
            )
        )
        try:
            await db.commit()
        except IntegrityError:
            # Created concurrently by another request
            await db.rollback()
        return await self.load_cart(db, user_id)

    def recalculate(self, cart: Cart) -> None:
        cart.subtotal, cart.tax, cart.total = compute_totals(
            ((item.price, item.quantity) for item in cart.items),
            self.settings.TAX_RATE,
        )

    async def _save(self, db: AsyncSession, cart: Cart) -> Cart:
        self.recalculate(cart)
        # Always write the cart row so the version check runs
        cart.updated_at = utc_now()
        user_id = cart.user_id
        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            logger.info("Cart of user %s changed concurrently; write rejected", user_id)
            raise ConflictError(
                "Cart changed while it was being updated, please retry", field="cart"
            )
        return await self.load_cart(db, user_id)

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    async def resolve(self, db: AsyncSession, ref: ItemRef) -> Sellable:
        """Look up the live catalog entry behind a reference."""
        if isinstance(ref, ByListing):
            listing = (
                await db.execute(
                    select(ProductListing)
                    .where(ProductListing.id == ref.listing_id)
                    .options(selectinload(ProductListing.product))
                    .execution_options(populate_existing=True)
                )
            ).scalar_one_or_none()
            if listing is None:
                raise NotFoundError("Product listing not found")
            if not listing.is_available or not listing.product.is_active:
                raise BusinessRuleViolation("Product listing is not available")
            return Sellable(
                product=listing.product,
                listing=listing,
                price=listing.price,
                stock=listing.stock_quantity,
            )

        if isinstance(ref, ByProduct):
            product = await db.get(Product, ref.product_id, populate_existing=True)
            if product is None:
                raise NotFoundError("Product not found")
            if not product.is_active:
                raise BusinessRuleViolation("Product is not available")
            return Sellable(
                product=product, listing=None, price=product.price, stock=product.stock
            )

        raise AppError(f"Unsupported cart reference: {ref!r}")

    @staticmethod
    def find_line(cart: Cart, ref: ItemRef) -> Optional[CartItem]:
        if isinstance(ref, ByListing):
            return next(
                (item for item in cart.items if item.listing_id == ref.listing_id), None
            )
        # Prefer the plain product line over listing lines of the same product
        matches = [item for item in cart.items if item.product_id == ref.product_id]
        plain = [item for item in matches if item.listing_id is None]
        return (plain or matches or [None])[0]

    @staticmethod
    def _line_for(cart: Cart, sellable: Sellable) -> Optional[CartItem]:
        return next(
            (
                item
                for item in cart.items
                if item.product_id == sellable.product.id
                and item.listing_id == sellable.listing_id
            ),
            None,
        )

    def _append_line(self, cart: Cart, sellable: Sellable, quantity: int) -> None:
        next_position = max((item.position for item in cart.items), default=-1) + 1
        cart.items.append(
            CartItem(
                product_id=sellable.product.id,
                listing_id=sellable.listing_id,
                variant_id=sellable.listing.variant_id if sellable.listing else None,
                seller_id=(
                    sellable.listing.seller_id
                    if sellable.listing
                    else sellable.product.seller_id
                ),
                quantity=quantity,
                price=sellable.price,
                position=next_position,
            )
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_item(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        ref: ItemRef,
        quantity: int = 1,
    ) -> Cart:
        """Add a line or increment an existing one; the first-add price is kept."""
        sellable = await self.resolve(db, ref)
        cart = await self.get_or_create(db, user_id)

        line = self._line_for(cart, sellable)
        requested = quantity + (line.quantity if line else 0)
        if sellable.stock < requested:
            raise InsufficientStockError(sellable.product.name)

        if line is not None:
            line.quantity = requested
        else:
            self._append_line(cart, sellable, quantity)
        return await self._save(db, cart)

    async def update_item_quantity(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        ref: ItemRef,
        quantity: int,
    ) -> Cart:
        if quantity <= 0:
            return await self.remove_item(db, user_id=user_id, ref=ref)

        cart = await self.get_or_create(db, user_id)
        line = self.find_line(cart, ref)
        if line is None:
            raise NotFoundError("Item not found in cart")

        stock_ref = stock_ref_for(line)
        sellable = await self.resolve(
            db,
            ByListing(stock_ref.listing_id)
            if stock_ref.is_listing
            else ByProduct(stock_ref.product_id),
        )
        if sellable.stock < quantity:
            raise InsufficientStockError(sellable.product.name)

        line.quantity = quantity
        return await self._save(db, cart)

    async def remove_item(
        self, db: AsyncSession, *, user_id: uuid.UUID, ref: ItemRef
    ) -> Cart:
        cart = await self.get_or_create(db, user_id)
        if isinstance(ref, ByListing):
            doomed = [item for item in cart.items if item.listing_id == ref.listing_id]
        else:
            doomed = [item for item in cart.items if item.product_id == ref.product_id]
        for item in doomed:
            cart.items.remove(item)
        return await self._save(db, cart)

    async def clear(self, db: AsyncSession, *, user_id: uuid.UUID) -> Cart:
        cart = await self.get_or_create(db, user_id)
        cart.items.clear()
        return await self._save(db, cart)

    async def sync(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        items: Sequence[tuple[ItemRef, int]],
    ) -> Cart:
        """Merge client-held lines; unknown, inactive or short entries are skipped."""
        cart = await self.get_or_create(db, user_id)

        for ref, quantity in items:
            if quantity < 1:
                continue
            try:
                sellable = await self.resolve(db, ref)
            except (NotFoundError, BusinessRuleViolation):
                logger.info("Cart sync skipped unavailable item %s", ref)
                continue

            line = self._line_for(cart, sellable)
            requested = quantity + (line.quantity if line else 0)
            if sellable.stock < requested:
                logger.info("Cart sync skipped under-stocked item %s", ref)
                continue

            if line is not None:
                line.quantity = requested
            else:
                self._append_line(cart, sellable, quantity)

        return await self._save(db, cart)
