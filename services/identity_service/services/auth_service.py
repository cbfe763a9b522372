"""Registration, login and token lifecycle for marketplace accounts."""

import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from libs.auth.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_token,
    hash_password,
    hash_token,
    verify_password,
)
from libs.common.datetime_utils import as_utc, utc_now
from libs.common.emails.notifier import EmailNotifier
from libs.common.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from libs.common.logging import get_logger
from services.identity_service.models import Role, RoleName, Seller, SellerStatus, User
from services.identity_service.schemas import RegisterRequest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

EMAIL_VERIFICATION_TTL = timedelta(hours=24)
PASSWORD_RESET_TTL = timedelta(hours=1)

SELLER_LOGIN_BLOCKS = {
    SellerStatus.PENDING: (
        "Your seller application is pending admin approval. "
        "Please wait for approval to login."
    ),
    SellerStatus.REJECTED: (
        "Your seller application has been rejected. Please contact support."
    ),
    SellerStatus.SUSPENDED: (
        "Your seller account has been suspended. Please contact support."
    ),
}


@dataclass
class AuthResult:
    user: User
    access_token: str
    refresh_token: str


async def get_role(db: AsyncSession, name: RoleName | str) -> Role:
    """Load a seeded role by name; a missing role is a deployment fault."""
    role_name = name.value if isinstance(name, RoleName) else name
    result = await db.execute(select(Role).where(Role.name == role_name))
    role = result.scalar_one_or_none()
    if role is None:
        raise AppError(f"Role '{role_name}' not found. Please seed roles.")
    return role


async def load_user(db: AsyncSession, user_id) -> Optional[User]:
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.role))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class AuthService:
    """Account registration, credential checks and one-time tokens."""

    def __init__(self, notifier: EmailNotifier):
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def create_user(
        self,
        db: AsyncSession,
        *,
        data: RegisterRequest,
        role_name: RoleName = RoleName.CUSTOMER,
    ) -> tuple[User, str]:
        """Stage a new user; returns the user and its raw verification token.

        The caller owns the commit.
        """
        existing = await db.execute(select(User.id).where(User.email == data.email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Email already registered", field="email")

        role = await get_role(db, role_name)
        raw_token, hashed_token = generate_token()

        user = User(
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            role_id=role.id,
            email_verification_token=hashed_token,
            email_verification_expires_at=utc_now() + EMAIL_VERIFICATION_TTL,
        )
        db.add(user)
        await db.flush()
        return user, raw_token

    async def issue_tokens(self, db: AsyncSession, user: User) -> AuthResult:
        access_token = create_access_token(user.id, user.email, user.role.name)
        refresh_token = create_refresh_token(user.id)
        user.refresh_token = refresh_token
        await db.commit()
        return AuthResult(
            user=await load_user(db, user.id),
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def register(self, db: AsyncSession, *, data: RegisterRequest) -> AuthResult:
        user, raw_token = await self.create_user(db, data=data)
        await db.commit()
        user = await load_user(db, user.id)

        logger.info("Registered user %s", user.id)
        await self.notifier.send_verification_email(user.email, raw_token)
        return await self.issue_tokens(db, user)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def login(self, db: AsyncSession, *, email: str, password: str) -> AuthResult:
        result = await db.execute(
            select(User)
            .where(User.email == email.strip().lower())
            .options(selectinload(User.role))
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        if not user.is_active:
            raise UnauthorizedError("Your account has been deactivated")

        if user.role and user.role.name == RoleName.SELLER.value:
            seller_status = (
                await db.execute(select(Seller.status).where(Seller.user_id == user.id))
            ).scalar_one_or_none()
            if seller_status in SELLER_LOGIN_BLOCKS:
                raise ForbiddenError(SELLER_LOGIN_BLOCKS[seller_status])

        user.last_login_at = utc_now()
        logger.info("User %s logged in", user.id)
        return await self.issue_tokens(db, user)

    async def refresh(self, db: AsyncSession, *, refresh_token: str) -> str:
        """Exchange a stored refresh token for a new access token."""
        payload = decode_refresh_token(refresh_token)
        if payload is None:
            raise UnauthorizedError("Invalid refresh token")

        result = await db.execute(
            select(User)
            .where(User.id == _parse_uuid(payload["sub"]))
            .options(selectinload(User.role))
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None or not user.is_active or user.refresh_token != refresh_token:
            raise UnauthorizedError("Invalid refresh token")

        return create_access_token(user.id, user.email, user.role.name)

    async def logout(self, db: AsyncSession, *, user_id) -> None:
        user = await db.get(User, user_id)
        if user is not None:
            user.refresh_token = None
            await db.commit()

    # ------------------------------------------------------------------
    # Email verification / password reset
    # ------------------------------------------------------------------

    async def verify_email(self, db: AsyncSession, *, token: str) -> None:
        result = await db.execute(
            select(User).where(User.email_verification_token == hash_token(token))
        )
        user = result.scalar_one_or_none()
        if user is None or _expired(user.email_verification_expires_at):
            raise ValidationFailedError("Invalid or expired verification token")

        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_expires_at = None
        await db.commit()

    async def resend_verification(self, db: AsyncSession, *, email: str) -> None:
        user = await self._get_by_email(db, email)
        if user.is_email_verified:
            raise ValidationFailedError("Email already verified")

        raw_token, hashed_token = generate_token()
        user.email_verification_token = hashed_token
        user.email_verification_expires_at = utc_now() + EMAIL_VERIFICATION_TTL
        await db.commit()

        await self.notifier.send_verification_email(user.email, raw_token)

    async def forgot_password(self, db: AsyncSession, *, email: str) -> None:
        user = await self._get_by_email(db, email)

        raw_token, hashed_token = generate_token()
        user.password_reset_token = hashed_token
        user.password_reset_expires_at = utc_now() + PASSWORD_RESET_TTL
        await db.commit()

        await self.notifier.send_password_reset(user.email, raw_token)

    async def reset_password(
        self, db: AsyncSession, *, token: str, new_password: str
    ) -> None:
        result = await db.execute(
            select(User).where(User.password_reset_token == hash_token(token))
        )
        user = result.scalar_one_or_none()
        if user is None or _expired(user.password_reset_expires_at):
            raise ValidationFailedError("Invalid or expired reset token")

        user.password_hash = hash_password(new_password)
        user.password_reset_token = None
        user.password_reset_expires_at = None
        # Existing sessions must log in again
        user.refresh_token = None
        await db.commit()
        logger.info("Password reset for user %s", user.id)

    async def _get_by_email(self, db: AsyncSession, email: str) -> User:
        result = await db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user


def _expired(expires_at) -> bool:
    return expires_at is None or as_utc(expires_at) <= utc_now()


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise UnauthorizedError("Invalid refresh token")
