"""Per-user wishlist."""

import uuid

from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from services.store_service.models import Product, Wishlist, WishlistItem
from services.store_service.services.cart_service import CartService
from services.store_service.services.refs import ByProduct
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


class WishlistService:
    def __init__(self, cart_service: CartService):
        self.cart_service = cart_service

    async def _load(self, db: AsyncSession, user_id: uuid.UUID):
        result = await db.execute(
            select(Wishlist)
            .where(Wishlist.user_id == user_id)
            .options(selectinload(Wishlist.items).selectinload(WishlistItem.product))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, *, user_id: uuid.UUID) -> Wishlist:
        wishlist = await self._load(db, user_id)
        if wishlist is not None:
            return wishlist

        db.add(Wishlist(user_id=user_id))
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
        return await self._load(db, user_id)

    async def add(
        self, db: AsyncSession, *, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> Wishlist:
        if await db.get(Product, product_id) is None:
            raise NotFoundError("Product not found")

        wishlist = await self.get(db, user_id=user_id)
        if any(item.product_id == product_id for item in wishlist.items):
            return wishlist

        wishlist.items.append(WishlistItem(product_id=product_id))
        await db.commit()
        return await self._load(db, user_id)

    async def remove(
        self, db: AsyncSession, *, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> Wishlist:
        wishlist = await self.get(db, user_id=user_id)
        for item in [i for i in wishlist.items if i.product_id == product_id]:
            wishlist.items.remove(item)
        await db.commit()
        return await self._load(db, user_id)

    async def clear(self, db: AsyncSession, *, user_id: uuid.UUID) -> Wishlist:
        wishlist = await self.get(db, user_id=user_id)
        wishlist.items.clear()
        await db.commit()
        return await self._load(db, user_id)

    async def move_to_cart(
        self, db: AsyncSession, *, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> Wishlist:
        """Add one unit to the cart, then drop the product from the wishlist."""
        wishlist = await self.get(db, user_id=user_id)
        if not any(item.product_id == product_id for item in wishlist.items):
            raise NotFoundError("Product not in wishlist")

        await self.cart_service.add_item(
            db, user_id=user_id, ref=ByProduct(product_id), quantity=1
        )
        logger.info("Moved product %s from wishlist to cart for %s", product_id, user_id)
        return await self.remove(db, user_id=user_id, product_id=product_id)
