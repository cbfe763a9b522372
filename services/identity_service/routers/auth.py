"""Authentication endpoints: registration, sessions and one-time tokens."""

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import auth_limit
from libs.common.responses import Envelope, MessageData
from libs.db.session import get_async_db
from services.identity_service.routers._deps import get_auth_service
from services.identity_service.schemas import (
    AccessTokenResponse,
    AuthResponse,
    EmailRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenRequest,
    UserResponse,
)
from services.identity_service.services.auth_service import (
    AuthResult,
    AuthService,
    load_user,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(result: AuthResult) -> Envelope[AuthResponse]:
    return Envelope(
        data=AuthResponse(
            user=UserResponse.model_validate(result.user),
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        )
    )


@router.post(
    "/register",
    response_model=Envelope[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create a customer account and return a fresh token pair."""
    return _auth_response(await auth_service.register(db, data=payload))


@router.post("/login", response_model=Envelope[AuthResponse])
@auth_limit
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    result = await auth_service.login(
        db, email=payload.email, password=payload.password
    )
    return _auth_response(result)


@router.post("/refresh-token", response_model=Envelope[AccessTokenResponse])
async def refresh_token(
    payload: RefreshTokenRequest,
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    access_token = await auth_service.refresh(db, refresh_token=payload.refresh_token)
    return Envelope(data=AccessTokenResponse(access_token=access_token))


@router.post("/logout", response_model=Envelope[MessageData])
async def logout(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.logout(db, user_id=current_user.user_id)
    return Envelope(data=MessageData(message="Logged out successfully"))


@router.get("/me", response_model=Envelope[UserResponse])
async def me(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    user = await load_user(db, current_user.user_id)
    return Envelope(data=UserResponse.model_validate(user))


@router.post("/verify-email", response_model=Envelope[MessageData])
async def verify_email(
    payload: TokenRequest,
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.verify_email(db, token=payload.token)
    return Envelope(data=MessageData(message="Email verified successfully"))


@router.post("/resend-verification", response_model=Envelope[MessageData])
async def resend_verification(
    payload: EmailRequest,
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.resend_verification(db, email=payload.email)
    return Envelope(data=MessageData(message="Verification email sent"))


@router.post("/forgot-password", response_model=Envelope[MessageData])
@auth_limit
async def forgot_password(
    request: Request,
    payload: EmailRequest,
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.forgot_password(db, email=payload.email)
    return Envelope(data=MessageData(message="Password reset email sent"))


@router.post("/reset-password", response_model=Envelope[MessageData])
@auth_limit
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_async_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.reset_password(
        db, token=payload.token, new_password=payload.password
    )
    return Envelope(data=MessageData(message="Password reset successful"))
