"""User profile and admin user management endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import get_current_user, require_admin
from libs.auth.models import AuthUser
from libs.common.responses import Envelope, MessageData, Page
from libs.db.session import get_async_db
from services.identity_service.models import RoleName
from services.identity_service.routers._deps import get_user_service
from services.identity_service.schemas import (
    RoleAssignRequest,
    UserResponse,
    UserUpdate,
)
from services.identity_service.services.user_service import UserService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=Envelope[UserResponse])
async def get_me(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.get_user(db, current_user.user_id)
    return Envelope(data=UserResponse.model_validate(user))


@router.put("/profile", response_model=Envelope[UserResponse])
async def update_profile(
    payload: UserUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.update_profile(
        db, user_id=current_user.user_id, data=payload
    )
    return Envelope(data=UserResponse.model_validate(user))


# ============================================================================
# ADMIN
# ============================================================================


@router.get("", response_model=Envelope[Page[UserResponse]])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[RoleName] = None,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    user_service: UserService = Depends(get_user_service),
):
    users, total = await user_service.list_users(
        db, page=page, limit=limit, role=role
    )
    items = [UserResponse.model_validate(user) for user in users]
    return Envelope(data=Page.build(items, total, page, limit))


@router.get("/{user_id}", response_model=Envelope[UserResponse])
async def get_user(
    user_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.get_user(db, user_id)
    return Envelope(data=UserResponse.model_validate(user))


@router.put("/{user_id}/role", response_model=Envelope[UserResponse])
async def assign_role(
    user_id: uuid.UUID,
    payload: RoleAssignRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.assign_role(db, user_id=user_id, role_name=payload.role)
    return Envelope(data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=Envelope[MessageData])
async def delete_user(
    user_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    user_service: UserService = Depends(get_user_service),
):
    await user_service.delete_user(db, user_id=user_id)
    return Envelope(data=MessageData(message="User deleted"))
