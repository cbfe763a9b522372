"""Product reviews, moderation and helpfulness votes."""

import math
import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import DuplicateReviewError, ForbiddenError, NotFoundError
from libs.common.logging import get_logger
from services.store_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Review,
    ReviewVote,
    VoteType,
)
from services.store_service.schemas import (
    ProductReviewsResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from services.store_service.services.catalog_service import (
    CatalogService,
    ensure_can_manage,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class ReviewService:
    def __init__(self, catalog_service: CatalogService):
        self.catalog_service = catalog_service

    async def _get(self, db: AsyncSession, review_id: uuid.UUID) -> Review:
        review = await db.get(Review, review_id, populate_existing=True)
        if review is None:
            raise NotFoundError("Review not found")
        return review

    async def _has_delivered_purchase(
        self, db: AsyncSession, *, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> bool:
        found = await db.execute(
            select(Order.id)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                Order.user_id == user_id,
                Order.order_status == OrderStatus.DELIVERED,
                OrderItem.product_id == product_id,
            )
            .limit(1)
        )
        return found.scalar_one_or_none() is not None

    async def create(
        self, db: AsyncSession, *, user_id: uuid.UUID, data: ReviewCreate
    ) -> Review:
        product = await db.get(Product, data.product_id)
        if product is None:
            raise NotFoundError("Product not found")

        existing = await db.execute(
            select(Review.id).where(
                Review.product_id == data.product_id, Review.user_id == user_id
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateReviewError()

        review = Review(
            product_id=data.product_id,
            user_id=user_id,
            rating=data.rating,
            title=data.title,
            comment=data.comment,
            images=list(data.images),
            is_verified_purchase=await self._has_delivered_purchase(
                db, user_id=user_id, product_id=data.product_id
            ),
        )
        db.add(review)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise DuplicateReviewError()

        await self.catalog_service.recompute_rating(db, data.product_id)
        await db.commit()
        logger.info("Review %s created for product %s", review.id, data.product_id)
        return await self._get(db, review.id)

    async def update(
        self,
        db: AsyncSession,
        *,
        review_id: uuid.UUID,
        user_id: uuid.UUID,
        data: ReviewUpdate,
    ) -> Review:
        review = await self._get(db, review_id)
        if review.user_id != user_id:
            raise ForbiddenError("Not authorized to update this review")

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(review, field, value)
        # Edited content goes back through moderation
        review.is_approved = False
        review.approved_at = None

        await db.flush()
        await self.catalog_service.recompute_rating(db, review.product_id)
        await db.commit()
        return await self._get(db, review.id)

    async def delete(
        self, db: AsyncSession, *, review_id: uuid.UUID, actor: AuthUser
    ) -> None:
        review = await self._get(db, review_id)
        if review.user_id != actor.user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to delete this review")

        product_id = review.product_id
        await db.delete(review)
        await db.flush()
        await self.catalog_service.recompute_rating(db, product_id)
        await db.commit()

    async def approve(self, db: AsyncSession, *, review_id: uuid.UUID) -> Review:
        review = await self._get(db, review_id)
        if not review.is_approved:
            review.is_approved = True
            review.approved_at = utc_now()
            await db.flush()
            await self.catalog_service.recompute_rating(db, review.product_id)
            await db.commit()
        return await self._get(db, review.id)

    async def add_vote(
        self,
        db: AsyncSession,
        *,
        review_id: uuid.UUID,
        user_id: uuid.UUID,
        vote: VoteType,
    ) -> Review:
        """Record or replace the user's vote, then recount both tallies."""
        review = await self._get(db, review_id)

        current = (
            await db.execute(
                select(ReviewVote).where(
                    ReviewVote.review_id == review.id, ReviewVote.user_id == user_id
                )
            )
        ).scalar_one_or_none()
        if current is None:
            db.add(ReviewVote(review_id=review.id, user_id=user_id, vote=vote))
        else:
            current.vote = vote
        await db.flush()

        counts = dict(
            (
                await db.execute(
                    select(ReviewVote.vote, func.count(ReviewVote.id))
                    .where(ReviewVote.review_id == review.id)
                    .group_by(ReviewVote.vote)
                )
            ).all()
        )
        review.helpful_count = counts.get(VoteType.HELPFUL, 0)
        review.not_helpful_count = counts.get(VoteType.NOT_HELPFUL, 0)
        await db.commit()
        return await self._get(db, review.id)

    async def add_seller_response(
        self,
        db: AsyncSession,
        *,
        review_id: uuid.UUID,
        actor: AuthUser,
        comment: str,
    ) -> Review:
        review = await self._get(db, review_id)
        product = await db.get(Product, review.product_id)
        ensure_can_manage(product.seller_id if product else None, actor)

        review.seller_response = comment
        review.seller_response_at = utc_now()
        await db.commit()
        return await self._get(db, review.id)

    async def get_product_reviews(
        self,
        db: AsyncSession,
        *,
        product_id: uuid.UUID,
        page: int = 1,
        limit: int = 10,
        rating: Optional[int] = None,
    ) -> ProductReviewsResponse:
        product = await db.get(Product, product_id, populate_existing=True)
        if product is None:
            raise NotFoundError("Product not found")

        conditions = [Review.product_id == product_id, Review.is_approved.is_(True)]
        if rating is not None:
            conditions.append(Review.rating == rating)

        total = (
            await db.execute(select(func.count(Review.id)).where(*conditions))
        ).scalar_one()
        reviews = (
            await db.execute(
                select(Review)
                .where(*conditions)
                .order_by(Review.helpful_count.desc(), Review.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
        ).scalars().all()

        distribution = {star: 0 for star in range(1, 6)}
        rows = await db.execute(
            select(Review.rating, func.count(Review.id))
            .where(Review.product_id == product_id, Review.is_approved.is_(True))
            .group_by(Review.rating)
        )
        for star, count in rows.all():
            distribution[star] = count

        return ProductReviewsResponse(
            items=[ReviewResponse.model_validate(review) for review in reviews],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit) if limit else 0,
            average_rating=product.average_rating,
            total_reviews=product.total_reviews,
            rating_distribution=distribution,
        )
