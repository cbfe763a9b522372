"""Wishlist endpoints for the signed-in user."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.responses import Envelope
from libs.db.session import get_async_db
from services.store_service.routers._deps import get_wishlist_service
from services.store_service.schemas import WishlistAddRequest, WishlistResponse
from services.store_service.services.wishlist_service import WishlistService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=Envelope[WishlistResponse])
async def get_wishlist(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    wishlist = await wishlist_service.get(db, user_id=current_user.user_id)
    return Envelope(data=WishlistResponse.model_validate(wishlist))


@router.post("", response_model=Envelope[WishlistResponse])
async def add_to_wishlist(
    payload: WishlistAddRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    wishlist = await wishlist_service.add(
        db, user_id=current_user.user_id, product_id=payload.product_id
    )
    return Envelope(data=WishlistResponse.model_validate(wishlist))


@router.delete("/{product_id}", response_model=Envelope[WishlistResponse])
async def remove_from_wishlist(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    wishlist = await wishlist_service.remove(
        db, user_id=current_user.user_id, product_id=product_id
    )
    return Envelope(data=WishlistResponse.model_validate(wishlist))


@router.delete("", response_model=Envelope[WishlistResponse])
async def clear_wishlist(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    wishlist = await wishlist_service.clear(db, user_id=current_user.user_id)
    return Envelope(data=WishlistResponse.model_validate(wishlist))


@router.post("/{product_id}/move-to-cart", response_model=Envelope[WishlistResponse])
async def move_to_cart(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    wishlist_service: WishlistService = Depends(get_wishlist_service),
):
    wishlist = await wishlist_service.move_to_cart(
        db, user_id=current_user.user_id, product_id=product_id
    )
    return Envelope(data=WishlistResponse.model_validate(wishlist))
