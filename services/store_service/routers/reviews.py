"""Product review endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_admin, require_roles
from libs.auth.models import AuthUser
from libs.common.responses import Envelope, MessageData
from libs.db.session import get_async_db
from services.store_service.routers._deps import get_review_service
from services.store_service.schemas import (
    ProductReviewsResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    ReviewVoteRequest,
    SellerResponseRequest,
)
from services.store_service.services.review_service import ReviewService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post(
    "",
    response_model=Envelope[ReviewResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    payload: ReviewCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    review_service: ReviewService = Depends(get_review_service),
):
    review = await review_service.create(
        db, user_id=current_user.user_id, data=payload
    )
    return Envelope(data=ReviewResponse.model_validate(review))


@router.get("/product/{product_id}", response_model=Envelope[ProductReviewsResponse])
async def product_reviews(
    product_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    db: AsyncSession = Depends(get_async_db),
    review_service: ReviewService = Depends(get_review_service),
):
    """Approved reviews for a product with its rating distribution."""
    result = await review_service.get_product_reviews(
        db, product_id=product_id, page=page, limit=limit, rating=rating
    )
    return Envelope(data=result)


@router.put("/{review_id}", response_model=Envelope[ReviewResponse])
async def update_review(
    review_id: uuid.UUID,
    payload: ReviewUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    review_service: ReviewService = Depends(get_review_service),
):
    review = await review_service.update(
        db, review_id=review_id, user_id=current_user.user_id, data=payload
    )
    return Envelope(data=ReviewResponse.model_validate(review))


@router.delete("/{review_id}", response_model=Envelope[MessageData])
async def delete_review(
    review_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    review_service: ReviewService = Depends(get_review_service),
):
    await review_service.delete(db, review_id=review_id, actor=current_user)
    return Envelope(data=MessageData(message="Review deleted"))


@router.post("/{review_id}/vote", response_model=Envelope[ReviewResponse])
async def vote_review(
    review_id: uuid.UUID,
    payload: ReviewVoteRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    review_service: ReviewService = Depends(get_review_service),
):
    review = await review_service.add_vote(
        db, review_id=review_id, user_id=current_user.user_id, vote=payload.vote
    )
    return Envelope(data=ReviewResponse.model_validate(review))


@router.post("/{review_id}/response", response_model=Envelope[ReviewResponse])
async def respond_to_review(
    review_id: uuid.UUID,
    payload: SellerResponseRequest,
    current_user: AuthUser = Depends(require_roles("seller", "admin")),
    db: AsyncSession = Depends(get_async_db),
    review_service: ReviewService = Depends(get_review_service),
):
    review = await review_service.add_seller_response(
        db, review_id=review_id, actor=current_user, comment=payload.comment
    )
    return Envelope(data=ReviewResponse.model_validate(review))


@router.put("/{review_id}/approve", response_model=Envelope[ReviewResponse])
async def approve_review(
    review_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    review_service: ReviewService = Depends(get_review_service),
):
    review = await review_service.approve(db, review_id=review_id)
    return Envelope(data=ReviewResponse.model_validate(review))
