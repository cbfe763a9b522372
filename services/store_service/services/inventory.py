"""Stock primitives.

Each cart or order line draws stock from exactly one entity: its listing
when the line names one, otherwise the product. Decrement and restore both
go through `StockRef` so the two paths always touch the same row.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.models import Product, ProductListing
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class StockRef:
    product_id: Optional[uuid.UUID]
    listing_id: Optional[uuid.UUID] = None

    @property
    def is_listing(self) -> bool:
        return self.listing_id is not None


async def available_stock(db: AsyncSession, ref: StockRef) -> int:
    """Read the live stock for a line; missing entities count as zero."""
    if ref.is_listing:
        stmt = select(ProductListing.stock_quantity).where(
            ProductListing.id == ref.listing_id
        )
    else:
        stmt = select(Product.stock).where(Product.id == ref.product_id)
    value = (await db.execute(stmt)).scalar_one_or_none()
    return value or 0


async def decrement_stock(db: AsyncSession, ref: StockRef, quantity: int) -> bool:
    """Atomically take `quantity` units; returns False when stock is short.

    The predicate `stock >= quantity` is evaluated by the database at write
    time, so concurrent decrements can never drive stock below zero.
    """
    if ref.is_listing:
        stmt = (
            update(ProductListing)
            .where(
                ProductListing.id == ref.listing_id,
                ProductListing.stock_quantity >= quantity,
            )
            .values(
                stock_quantity=ProductListing.stock_quantity - quantity,
                is_available=case(
                    (ProductListing.stock_quantity - quantity > 0, True),
                    else_=False,
                ),
                total_sold=ProductListing.total_sold + quantity,
            )
        )
    else:
        stmt = update(Product).where(
            Product.id == ref.product_id,
            Product.stock >= quantity,
        ).values(stock=Product.stock - quantity)

    result = await db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount != 1:
        return False

    await db.execute(
        update(Product)
        .where(Product.id == ref.product_id)
        .values(total_sold=Product.total_sold + quantity)
        .execution_options(synchronize_session=False)
    )
    return True


async def restore_stock(db: AsyncSession, ref: StockRef, quantity: int) -> bool:
    """Give `quantity` units back; returns False if the entity is gone."""
    if ref.is_listing:
        stmt = (
            update(ProductListing)
            .where(ProductListing.id == ref.listing_id)
            .values(
                stock_quantity=ProductListing.stock_quantity + quantity,
                is_available=True,
                total_sold=case(
                    (
                        ProductListing.total_sold >= quantity,
                        ProductListing.total_sold - quantity,
                    ),
                    else_=0,
                ),
            )
        )
    elif ref.product_id is not None:
        stmt = (
            update(Product)
            .where(Product.id == ref.product_id)
            .values(stock=Product.stock + quantity)
        )
    else:
        return False

    result = await db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount != 1:
        logger.warning("Stock restore skipped; %s no longer exists", ref)
        return False

    if ref.product_id is not None:
        await db.execute(
            update(Product)
            .where(Product.id == ref.product_id)
            .values(
                total_sold=case(
                    (Product.total_sold >= quantity, Product.total_sold - quantity),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
    return True
