"""Order number allocation: `ORD-YYYYMMDD-NNNN`, sequence reset daily.

Numbers come from one counter row per calendar day. The increment is a
single `UPDATE ... RETURNING`, so concurrent checkouts serialize on that row
and can never observe the same value.
"""

from datetime import date
from typing import Optional

from libs.common.datetime_utils import local_today
from libs.common.errors import AppError
from libs.common.logging import get_logger
from services.store_service.models import OrderSequence
from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ORDER_NUMBER_PREFIX = "ORD"
MAX_ALLOCATION_ATTEMPTS = 3


def format_order_number(day: date, sequence: int) -> str:
    """
    >>> format_order_number(date(2024, 3, 9), 7)
    'ORD-20240309-0007'
    """
    return f"{ORDER_NUMBER_PREFIX}-{day:%Y%m%d}-{sequence:04d}"


async def _increment(db: AsyncSession, day: date) -> Optional[int]:
    result = await db.execute(
        update(OrderSequence)
        .where(OrderSequence.day == day)
        .values(last_value=OrderSequence.last_value + 1)
        .returning(OrderSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none()


async def next_order_number(db: AsyncSession, day: Optional[date] = None) -> str:
    """Allocate the next number for `day` inside the caller's transaction."""
    day = day or local_today()

    for _ in range(MAX_ALLOCATION_ATTEMPTS):
        value = await _increment(db, day)
        if value is not None:
            return format_order_number(day, value)

        # First order of the day: create the counter row
        try:
            async with db.begin_nested():
                await db.execute(insert(OrderSequence).values(day=day, last_value=1))
            return format_order_number(day, 1)
        except IntegrityError:
            logger.debug("Order sequence for %s created concurrently; retrying", day)

    raise AppError(f"Could not allocate an order number for {day}")
