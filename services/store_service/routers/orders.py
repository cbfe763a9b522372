"""Order endpoints: checkout, history, cancellation and fulfilment."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_admin, require_roles
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.responses import Envelope, Page
from libs.db.session import get_async_db
from services.store_service.models import OrderStatus
from services.store_service.routers._deps import get_order_service
from services.store_service.schemas import (
    MarkPaidRequest,
    OrderCancelRequest,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
)
from services.store_service.services.order_service import OrderService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["orders"])


def _page(orders, total: int, page: int, limit: int):
    items = [OrderResponse.model_validate(order) for order in orders]
    return Envelope(data=Page.build(items, total, page, limit))


@router.post(
    "",
    response_model=Envelope[OrderResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    payload: OrderCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    order_service: OrderService = Depends(get_order_service),
):
    """Check out the caller's cart."""
    order = await order_service.create_order(
        db, user_id=current_user.user_id, data=payload
    )
    return Envelope(data=OrderResponse.model_validate(order))


@router.get("", response_model=Envelope[Page[OrderResponse]])
async def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    order_service: OrderService = Depends(get_order_service),
):
    orders, total = await order_service.get_user_orders(
        db,
        user_id=current_user.user_id,
        page=page,
        limit=limit,
        status=status_filter,
    )
    return _page(orders, total, page, limit)


@router.get("/seller", response_model=Envelope[Page[OrderResponse]])
async def list_seller_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    current_user: AuthUser = Depends(require_roles("seller")),
    db: AsyncSession = Depends(get_async_db),
    order_service: OrderService = Depends(get_order_service),
):
    if current_user.seller_id is None:
        raise NotFoundError("Seller profile not found")
    orders, total = await order_service.get_seller_orders(
        db,
        seller_id=current_user.seller_id,
        page=page,
        limit=limit,
        status=status_filter,
    )
    return _page(orders, total, page, limit)


@router.get("/{order_id}", response_model=Envelope[OrderResponse])
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    order_service: OrderService = Depends(get_order_service),
):
    order = await order_service.get_order(db, order_id=order_id, actor=current_user)
    return Envelope(data=OrderResponse.model_validate(order))


@router.post("/{order_id}/cancel", response_model=Envelope[OrderResponse])
async def cancel_order(
    order_id: uuid.UUID,
    payload: Optional[OrderCancelRequest] = None,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    order_service: OrderService = Depends(get_order_service),
):
    order = await order_service.cancel_order(
        db,
        order_id=order_id,
        user_id=current_user.user_id,
        reason=payload.reason if payload else None,
    )
    return Envelope(data=OrderResponse.model_validate(order))


@router.put("/{order_id}/status", response_model=Envelope[OrderResponse])
async def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_roles("seller", "admin")),
    db: AsyncSession = Depends(get_async_db),
    order_service: OrderService = Depends(get_order_service),
):
    order = await order_service.update_order_status(
        db,
        order_id=order_id,
        status=payload.status,
        actor=current_user,
        tracking_number=payload.tracking_number,
    )
    return Envelope(data=OrderResponse.model_validate(order))


@router.post("/{order_id}/pay", response_model=Envelope[OrderResponse])
async def mark_order_paid(
    order_id: uuid.UUID,
    payload: MarkPaidRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    order_service: OrderService = Depends(get_order_service),
):
    """Record an externally confirmed payment."""
    order = await order_service.mark_as_paid(
        db, order_id=order_id, transaction_id=payload.transaction_id
    )
    return Envelope(data=OrderResponse.model_validate(order))
