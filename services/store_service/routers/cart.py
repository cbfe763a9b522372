"""Cart endpoints for the signed-in user.

Line paths take ``?kind=product|listing`` so the same route can address a
plain product line or a seller listing line.
"""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.responses import Envelope
from libs.db.session import get_async_db
from services.store_service.routers._deps import get_cart_service
from services.store_service.schemas import (
    CartAddRequest,
    CartResponse,
    CartSyncRequest,
    CartUpdateRequest,
)
from services.store_service.services.cart_service import CartService
from services.store_service.services.refs import ref_from_path
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/cart", tags=["cart"])

ItemKind = Literal["product", "listing"]


@router.get("", response_model=Envelope[CartResponse])
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    cart_service: CartService = Depends(get_cart_service),
):
    cart = await cart_service.get_or_create(db, current_user.user_id)
    return Envelope(data=CartResponse.model_validate(cart))


@router.post("/add", response_model=Envelope[CartResponse])
async def add_to_cart(
    payload: CartAddRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    cart_service: CartService = Depends(get_cart_service),
):
    cart = await cart_service.add_item(
        db,
        user_id=current_user.user_id,
        ref=payload.to_ref(),
        quantity=payload.quantity,
    )
    return Envelope(data=CartResponse.model_validate(cart))


@router.post("/sync", response_model=Envelope[CartResponse])
async def sync_cart(
    payload: CartSyncRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    cart_service: CartService = Depends(get_cart_service),
):
    cart = await cart_service.sync(
        db,
        user_id=current_user.user_id,
        items=[(item.to_ref(), item.quantity) for item in payload.items],
    )
    return Envelope(data=CartResponse.model_validate(cart))


@router.put("/{item_id}", response_model=Envelope[CartResponse])
async def update_cart_item(
    item_id: uuid.UUID,
    payload: CartUpdateRequest,
    kind: ItemKind = Query("product"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    cart_service: CartService = Depends(get_cart_service),
):
    cart = await cart_service.update_item_quantity(
        db,
        user_id=current_user.user_id,
        ref=ref_from_path(item_id, kind),
        quantity=payload.quantity,
    )
    return Envelope(data=CartResponse.model_validate(cart))


@router.delete("/{item_id}", response_model=Envelope[CartResponse])
async def remove_cart_item(
    item_id: uuid.UUID,
    kind: ItemKind = Query("product"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    cart_service: CartService = Depends(get_cart_service),
):
    cart = await cart_service.remove_item(
        db, user_id=current_user.user_id, ref=ref_from_path(item_id, kind)
    )
    return Envelope(data=CartResponse.model_validate(cart))


@router.delete("", response_model=Envelope[CartResponse])
async def clear_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    cart_service: CartService = Depends(get_cart_service),
):
    cart = await cart_service.clear(db, user_id=current_user.user_id)
    return Envelope(data=CartResponse.model_validate(cart))
