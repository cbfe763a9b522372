"""Seller onboarding, profile and admin review endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_admin, require_roles
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.responses import Envelope, Page
from libs.db.session import get_async_db
from services.identity_service.models import SellerStatus
from services.identity_service.routers._deps import get_seller_service
from services.identity_service.schemas import (
    SellerApplyRequest,
    SellerRegisterRequest,
    SellerRegisterResponse,
    SellerResponse,
    SellerStats,
    SellerStatusReason,
    SellerUpdate,
    UserResponse,
)
from services.identity_service.services.seller_service import SellerService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/sellers", tags=["sellers"])


@router.post(
    "/register",
    response_model=Envelope[SellerRegisterResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register_seller(
    payload: SellerRegisterRequest,
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    """Create an account with a pending seller profile; no tokens until approval."""
    user, seller = await seller_service.register_seller(db, data=payload)
    return Envelope(
        data=SellerRegisterResponse(
            user=UserResponse.model_validate(user),
            seller=SellerResponse.model_validate(seller),
        )
    )


@router.post(
    "/apply",
    response_model=Envelope[SellerResponse],
    status_code=status.HTTP_201_CREATED,
)
async def apply(
    payload: SellerApplyRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    seller = await seller_service.apply(db, user_id=current_user.user_id, data=payload)
    return Envelope(data=SellerResponse.model_validate(seller))


@router.get("/profile", response_model=Envelope[SellerResponse])
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    seller = await seller_service.get_by_user(db, current_user.user_id)
    return Envelope(data=SellerResponse.model_validate(seller))


@router.put("/profile", response_model=Envelope[SellerResponse])
async def update_profile(
    payload: SellerUpdate,
    current_user: AuthUser = Depends(require_roles("seller", "admin")),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    seller = await seller_service.update_profile(
        db, user_id=current_user.user_id, data=payload
    )
    return Envelope(data=SellerResponse.model_validate(seller))


@router.get("/stats", response_model=Envelope[SellerStats])
async def get_stats(
    current_user: AuthUser = Depends(require_roles("seller")),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    if current_user.seller_id is None:
        raise NotFoundError("Seller profile not found")
    stats = await seller_service.stats(db, seller_id=current_user.seller_id)
    return Envelope(data=stats)


# ============================================================================
# ADMIN
# ============================================================================


@router.get("", response_model=Envelope[Page[SellerResponse]])
async def list_sellers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[SellerStatus] = Query(None, alias="status"),
    is_verified: Optional[bool] = None,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    sellers, total = await seller_service.list_sellers(
        db, page=page, limit=limit, status=status_filter, is_verified=is_verified
    )
    items = [SellerResponse.model_validate(seller) for seller in sellers]
    return Envelope(data=Page.build(items, total, page, limit))


@router.get("/{seller_id}", response_model=Envelope[SellerResponse])
async def get_seller(
    seller_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    seller = await seller_service.get_seller(db, seller_id)
    return Envelope(data=SellerResponse.model_validate(seller))


@router.put("/{seller_id}/approve", response_model=Envelope[SellerResponse])
async def approve_seller(
    seller_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    seller = await seller_service.approve(db, seller_id=seller_id)
    return Envelope(data=SellerResponse.model_validate(seller))


@router.put("/{seller_id}/reject", response_model=Envelope[SellerResponse])
async def reject_seller(
    seller_id: uuid.UUID,
    payload: SellerStatusReason,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    seller = await seller_service.reject(
        db, seller_id=seller_id, reason=payload.reason
    )
    return Envelope(data=SellerResponse.model_validate(seller))


@router.put("/{seller_id}/suspend", response_model=Envelope[SellerResponse])
async def suspend_seller(
    seller_id: uuid.UUID,
    payload: SellerStatusReason,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    seller_service: SellerService = Depends(get_seller_service),
):
    seller = await seller_service.suspend(
        db, seller_id=seller_id, reason=payload.reason
    )
    return Envelope(data=SellerResponse.model_validate(seller))
