"""Pydantic schemas for identity service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field
from services.identity_service.models import AddressType, RoleName, SellerStatus


def _normalize_email(value: str) -> str:
    return value.strip().lower()


NormalizedEmail = Annotated[EmailStr, AfterValidator(_normalize_email)]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: NormalizedEmail
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=30)


class LoginRequest(BaseModel):
    email: NormalizedEmail
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class EmailRequest(BaseModel):
    email: NormalizedEmail


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(..., min_length=6, max_length=128)


class RoleBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[RoleBrief] = None
    is_active: bool
    is_email_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ============================================================================
# USER SCHEMAS
# ============================================================================


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, max_length=30)
    avatar_url: Optional[str] = Field(None, max_length=512)


class RoleAssignRequest(BaseModel):
    role: RoleName


# ============================================================================
# ADDRESS SCHEMAS
# ============================================================================


class AddressBase(BaseModel):
    full_name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=30)
    address_line1: str = Field(..., max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., max_length=100)
    state: str = Field(..., max_length=100)
    country: str = Field("USA", max_length=100)
    zip_code: str = Field(..., max_length=20)
    address_type: AddressType = AddressType.HOME


class AddressCreate(AddressBase):
    is_default: bool = False


class AddressUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    address_type: Optional[AddressType] = None
    is_default: Optional[bool] = None


class AddressResponse(AddressBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    is_default: bool
    created_at: datetime


# ============================================================================
# SELLER SCHEMAS
# ============================================================================


class BusinessAddress(BaseModel):
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None


class SellerApplyRequest(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=200)
    business_email: NormalizedEmail
    business_phone: str = Field(..., max_length=30)
    description: Optional[str] = Field(None, max_length=2000)
    logo_url: Optional[str] = Field(None, max_length=512)
    banner_url: Optional[str] = Field(None, max_length=512)
    business_address: Optional[BusinessAddress] = None
    tax_id: str = Field(..., min_length=1, max_length=50)
    payout_details: Optional[dict] = None


class SellerRegisterRequest(SellerApplyRequest):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: NormalizedEmail
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=30)

    def to_register_request(self) -> RegisterRequest:
        return RegisterRequest(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            password=self.password,
            phone=self.phone,
        )


class SellerUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    business_email: Optional[EmailStr] = None
    business_phone: Optional[str] = Field(None, max_length=30)
    description: Optional[str] = Field(None, max_length=2000)
    logo_url: Optional[str] = Field(None, max_length=512)
    banner_url: Optional[str] = Field(None, max_length=512)
    business_address: Optional[BusinessAddress] = None
    payout_details: Optional[dict] = None


class SellerStatusReason(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class SellerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    business_name: str
    business_email: str
    business_phone: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    banner_url: Optional[str] = None
    business_address: Optional[dict] = None
    tax_id: str
    commission_rate: Decimal
    status: SellerStatus
    is_verified: bool
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    suspension_reason: Optional[str] = None
    created_at: datetime


class SellerRegisterResponse(BaseModel):
    user: UserResponse
    seller: SellerResponse


class SellerStats(BaseModel):
    total_products: int
    active_products: int
    total_orders: int
    total_revenue: Decimal
    average_rating: float
