import uuid
from typing import Annotated, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from libs.auth.models import AuthUser
from libs.auth.security import decode_access_token
from libs.common.errors import ForbiddenError, UnauthorizedError
from libs.db.session import get_async_db
from services.identity_service.models import Role, Seller, User

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: AsyncSession = Depends(get_async_db),
) -> AuthUser:
    """
    Resolve the bearer token to an active user and its role.
    """
    if token is None or not token.credentials:
        raise UnauthorizedError("Not authorized to access this route")

    payload = decode_access_token(token.credentials)
    if payload is None:
        raise UnauthorizedError("Invalid or expired token")

    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise UnauthorizedError("Invalid or expired token")

    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.role).selectinload(Role.permissions))
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthorizedError("User no longer exists")
    if not user.is_active:
        raise UnauthorizedError("Account is deactivated")

    seller_id = (
        await db.execute(select(Seller.id).where(Seller.user_id == user.id))
    ).scalar_one_or_none()

    auth_user = AuthUser(
        user_id=user.id,
        email=user.email,
        role=user.role.name if user.role else "customer",
        permissions=[p.name for p in user.role.permissions] if user.role else [],
        seller_id=seller_id,
    )
    request.state.user = auth_user
    return auth_user


def require_roles(*role_names: str) -> Callable:
    """Build a dependency that admits only the given role names."""

    async def _check(
        current_user: Annotated[AuthUser, Depends(get_current_user)],
    ) -> AuthUser:
        if current_user.role not in role_names:
            raise ForbiddenError(
                f"User role '{current_user.role}' is not authorized to access this route"
            )
        return current_user

    return _check


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
) -> AuthUser:
    """
    Ensure the user has the 'admin' role.
    """
    if not current_user.is_admin:
        raise ForbiddenError("Admin privileges required")
    return current_user


def require_permission(resource: str, action: str) -> Callable:
    """Build a dependency that checks a `resource:action` grant on the role."""

    async def _check(
        current_user: Annotated[AuthUser, Depends(get_current_user)],
    ) -> AuthUser:
        if not current_user.has_permission(resource, action):
            raise ForbiddenError(
                f"You do not have permission to {action} {resource}"
            )
        return current_user

    return _check
