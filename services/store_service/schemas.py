"""Pydantic schemas for store service."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.store_service.models import (
    ListingCondition,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    VoteType,
)
from services.store_service.services.refs import ByListing, ByProduct, ItemRef

# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=512)
    parent_id: Optional[uuid.UUID] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=512)
    parent_id: Optional[uuid.UUID] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    level: int
    sort_order: int
    is_active: bool
    created_at: datetime


class CategoryTree(CategoryResponse):
    children: list["CategoryTree"] = []


class CategoryBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str


# ============================================================================
# BRAND SCHEMAS
# ============================================================================


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    logo_url: Optional[str] = Field(None, max_length=512)
    website: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    logo_url: Optional[str] = Field(None, max_length=512)
    website: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class BrandResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    is_active: bool
    created_at: datetime


class BrandBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductImageIn(BaseModel):
    url: str = Field(..., max_length=512)
    alt_text: Optional[str] = Field(None, max_length=255)
    is_primary: bool = False


class ProductImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    url: str
    alt_text: Optional[str] = None
    is_primary: bool
    sort_order: int


class Specification(BaseModel):
    name: str
    value: str


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    short_description: Optional[str] = Field(None, max_length=500)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    compare_at_price: Optional[Decimal] = Field(None, ge=0)
    cost_per_item: Optional[Decimal] = Field(None, ge=0)
    stock: int = Field(0, ge=0)
    sku: Optional[str] = Field(None, max_length=100)
    brand_id: Optional[uuid.UUID] = None
    category_ids: list[uuid.UUID] = Field(default_factory=list)
    images: list[ProductImageIn] = Field(default_factory=list)
    specifications: list[Specification] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)
    # Admins may create on behalf of a seller
    seller_id: Optional[uuid.UUID] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    short_description: Optional[str] = Field(None, max_length=500)
    price: Optional[Decimal] = Field(None, ge=0)
    compare_at_price: Optional[Decimal] = Field(None, ge=0)
    cost_per_item: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    sku: Optional[str] = Field(None, max_length=100)
    brand_id: Optional[uuid.UUID] = None
    category_ids: Optional[list[uuid.UUID]] = None
    images: Optional[list[ProductImageIn]] = None
    specifications: Optional[list[Specification]] = None
    features: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    is_featured: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    seller_id: Optional[uuid.UUID] = None
    name: str
    slug: str
    description: str
    short_description: Optional[str] = None
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    stock: int
    sku: Optional[str] = None
    brand: Optional[BrandBrief] = None
    categories: list[CategoryBrief] = []
    images: list[ProductImageResponse] = []
    specifications: Optional[list[Specification]] = None
    features: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    average_rating: float
    total_reviews: int
    total_sold: int
    views: int
    is_active: bool
    is_featured: bool
    created_at: datetime
    updated_at: datetime


class ProductBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    price: Decimal
    stock: int
    is_active: bool
    average_rating: float


class ProductSort(str, enum.Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING = "rating"
    POPULAR = "popular"
    NAME = "name"


class ProductFilters(BaseModel):
    search: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    seller_id: Optional[uuid.UUID] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_rating: Optional[float] = Field(None, ge=0, le=5)
    in_stock: bool = False
    is_featured: Optional[bool] = None
    include_inactive: bool = False
    sort: ProductSort = ProductSort.NEWEST


# ============================================================================
# VARIANT / LISTING SCHEMAS
# ============================================================================


class VariantAttribute(BaseModel):
    name: str
    value: str


class VariantCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    name: Optional[str] = Field(None, max_length=200)
    attributes: list[VariantAttribute] = Field(default_factory=list)
    price: Decimal = Field(..., ge=0)
    compare_at_price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: int = Field(0, ge=0)
    image_url: Optional[str] = Field(None, max_length=512)
    is_default: bool = False


class VariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    sku: str
    name: Optional[str] = None
    attributes: list[VariantAttribute] = []
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    stock_quantity: int
    image_url: Optional[str] = None
    is_default: bool
    is_active: bool


class ListingCreate(BaseModel):
    variant_id: Optional[uuid.UUID] = None
    price: Decimal = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    condition: ListingCondition = ListingCondition.NEW
    shipping_days_min: int = Field(3, ge=0)
    shipping_days_max: int = Field(7, ge=0)
    returnable: bool = True
    return_window_days: int = Field(30, ge=0)
    # Admins may list on behalf of a seller
    seller_id: Optional[uuid.UUID] = None


class ListingStockUpdate(BaseModel):
    stock_quantity: int = Field(..., ge=0)


class ListingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    seller_id: uuid.UUID
    price: Decimal
    stock_quantity: int
    condition: ListingCondition
    shipping_days_min: int
    shipping_days_max: int
    returnable: bool
    return_window_days: int
    is_available: bool
    total_sold: int


class ProductDetailResponse(ProductResponse):
    variants: list[VariantResponse] = []
    listings: list[ListingResponse] = []


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemRefIn(BaseModel):
    """A product or listing reference; exactly one must be given."""

    product_id: Optional[uuid.UUID] = None
    listing_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def check_single_reference(self):
        if (self.product_id is None) == (self.listing_id is None):
            raise ValueError("Provide exactly one of product_id or listing_id")
        return self

    def to_ref(self) -> ItemRef:
        if self.listing_id is not None:
            return ByListing(self.listing_id)
        return ByProduct(self.product_id)


class CartAddRequest(CartItemRefIn):
    quantity: int = Field(1, ge=1)


class CartUpdateRequest(BaseModel):
    # Zero or less removes the line
    quantity: int


class CartSyncRequest(BaseModel):
    items: list[CartAddRequest] = Field(default_factory=list)


class CartItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    listing_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    seller_id: Optional[uuid.UUID] = None
    quantity: int
    price: Decimal
    product: Optional[ProductBrief] = None


class CartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    items: list[CartItemResponse] = []
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    expires_at: datetime
    updated_at: datetime


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class AddressSnapshot(BaseModel):
    full_name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=30)
    address_line1: str = Field(..., max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., max_length=100)
    state: str = Field(..., max_length=100)
    country: str = Field("USA", max_length=100)
    zip_code: str = Field(..., max_length=20)


class PaymentIn(BaseModel):
    method: PaymentMethod


class OrderCreate(BaseModel):
    shipping_address: AddressSnapshot
    billing_address: Optional[AddressSnapshot] = None
    payment: PaymentIn
    notes: Optional[str] = Field(None, max_length=1000)


class OrderCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)


class MarkPaidRequest(BaseModel):
    transaction_id: str = Field(..., min_length=1, max_length=255)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    listing_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    seller_id: Optional[uuid.UUID] = None
    product_name: str
    variant_name: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int
    price_at_purchase: Decimal
    status: OrderStatus
    tracking_number: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    user_id: Optional[uuid.UUID] = None
    shipping_address: dict
    billing_address: dict
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    discount: Decimal
    total: Decimal
    order_status: OrderStatus
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    items: list[OrderItemResponse] = []
    created_at: datetime
    updated_at: datetime


# ============================================================================
# REVIEW SCHEMAS
# ============================================================================


class ReviewCreate(BaseModel):
    product_id: uuid.UUID
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=100)
    comment: str = Field(..., min_length=1, max_length=2000)
    images: list[str] = Field(default_factory=list, max_length=5)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    comment: Optional[str] = Field(None, min_length=1, max_length=2000)
    images: Optional[list[str]] = Field(None, max_length=5)


class ReviewVoteRequest(BaseModel):
    vote: VoteType


class SellerResponseRequest(BaseModel):
    comment: str = Field(..., min_length=1, max_length=1000)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID
    rating: int
    title: str
    comment: str
    images: list[str] = []
    is_verified_purchase: bool
    is_approved: bool
    approved_at: Optional[datetime] = None
    helpful_count: int
    not_helpful_count: int
    seller_response: Optional[str] = None
    seller_response_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ProductReviewsResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
    page: int
    limit: int
    pages: int
    average_rating: float
    total_reviews: int
    rating_distribution: dict[int, int]


# ============================================================================
# WISHLIST SCHEMAS
# ============================================================================


class WishlistAddRequest(BaseModel):
    product_id: uuid.UUID


class WishlistItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    added_at: datetime
    product: Optional[ProductBrief] = None


class WishlistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    items: list[WishlistItemResponse] = []
