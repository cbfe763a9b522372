"""Product catalog endpoints, including variants and seller listings."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_roles
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.responses import Envelope, MessageData, Page
from libs.db.session import get_async_db
from services.store_service.routers._deps import get_catalog_service
from services.store_service.schemas import (
    ListingCreate,
    ListingResponse,
    ProductCreate,
    ProductDetailResponse,
    ProductFilters,
    ProductResponse,
    ProductUpdate,
    VariantCreate,
    VariantResponse,
)
from services.store_service.services.catalog_service import CatalogService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/products", tags=["products"])

require_seller = require_roles("seller", "admin")


def _page(products, total: int, page: int, limit: int):
    items = [ProductResponse.model_validate(product) for product in products]
    return Envelope(data=Page.build(items, total, page, limit))


@router.get("", response_model=Envelope[Page[ProductResponse]])
async def list_products(
    filters: ProductFilters = Depends(),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    public_filters = filters.model_copy(update={"include_inactive": False})
    products, total = await catalog_service.list_products(
        db, filters=public_filters, page=page, limit=limit
    )
    return _page(products, total, page, limit)


@router.post(
    "",
    response_model=Envelope[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    payload: ProductCreate,
    current_user: AuthUser = Depends(require_seller),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    product = await catalog_service.create_product(db, actor=current_user, data=payload)
    return Envelope(data=ProductResponse.model_validate(product))


@router.get("/featured", response_model=Envelope[list[ProductResponse]])
async def featured_products(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    products = await catalog_service.featured(db, limit=limit)
    return Envelope(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/search", response_model=Envelope[Page[ProductResponse]])
async def search_products(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    products, total = await catalog_service.search(
        db, text=q, page=page, limit=limit
    )
    return _page(products, total, page, limit)


@router.get("/seller/mine", response_model=Envelope[Page[ProductResponse]])
async def my_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_roles("seller")),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    if current_user.seller_id is None:
        raise NotFoundError("Seller profile not found")
    products, total = await catalog_service.seller_products(
        db, seller_id=current_user.seller_id, page=page, limit=limit
    )
    return _page(products, total, page, limit)


@router.get("/{id_or_slug}", response_model=Envelope[ProductDetailResponse])
async def get_product(
    id_or_slug: str,
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    """Fetch an active product by id or slug; each call counts as a view."""
    product = await catalog_service.get_by_id(db, id_or_slug)
    return Envelope(data=ProductDetailResponse.model_validate(product))


@router.put("/{product_id}", response_model=Envelope[ProductResponse])
async def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    current_user: AuthUser = Depends(require_seller),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    product = await catalog_service.update_product(
        db, product_id=product_id, actor=current_user, data=payload
    )
    return Envelope(data=ProductResponse.model_validate(product))


@router.delete("/{product_id}", response_model=Envelope[MessageData])
async def delete_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_seller),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    await catalog_service.hard_delete(db, product_id=product_id, actor=current_user)
    return Envelope(data=MessageData(message="Product deleted"))


@router.get("/{product_id}/related", response_model=Envelope[list[ProductResponse]])
async def related_products(
    product_id: uuid.UUID,
    limit: int = Query(8, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    products = await catalog_service.related(db, product_id=product_id, limit=limit)
    return Envelope(data=[ProductResponse.model_validate(p) for p in products])


@router.patch("/{product_id}/toggle-status", response_model=Envelope[ProductResponse])
async def toggle_product_status(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_seller),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    product = await catalog_service.toggle_active(
        db, product_id=product_id, actor=current_user
    )
    return Envelope(data=ProductResponse.model_validate(product))


# ============================================================================
# VARIANTS AND LISTINGS
# ============================================================================


@router.get("/{product_id}/variants", response_model=Envelope[list[VariantResponse]])
async def list_variants(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    variants = await catalog_service.list_variants(db, product_id=product_id)
    return Envelope(data=[VariantResponse.model_validate(v) for v in variants])


@router.post(
    "/{product_id}/variants",
    response_model=Envelope[VariantResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_variant(
    product_id: uuid.UUID,
    payload: VariantCreate,
    current_user: AuthUser = Depends(require_seller),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    variant = await catalog_service.create_variant(
        db, product_id=product_id, actor=current_user, data=payload
    )
    return Envelope(data=VariantResponse.model_validate(variant))


@router.get("/{product_id}/listings", response_model=Envelope[list[ListingResponse]])
async def list_listings(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    listings = await catalog_service.list_listings(db, product_id=product_id)
    return Envelope(
        data=[ListingResponse.model_validate(listing) for listing in listings]
    )


@router.post(
    "/{product_id}/listings",
    response_model=Envelope[ListingResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_listing(
    product_id: uuid.UUID,
    payload: ListingCreate,
    current_user: AuthUser = Depends(require_seller),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    """Offer an existing product under the caller's seller profile."""
    listing = await catalog_service.create_listing(
        db, product_id=product_id, actor=current_user, data=payload
    )
    return Envelope(data=ListingResponse.model_validate(listing))
