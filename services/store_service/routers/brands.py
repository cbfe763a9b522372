"""Brand endpoints; writes are admin only."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.responses import Envelope, MessageData
from libs.db.session import get_async_db
from services.store_service.routers._deps import get_catalog_service
from services.store_service.schemas import BrandCreate, BrandResponse, BrandUpdate
from services.store_service.services.catalog_service import CatalogService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/brands", tags=["brands"])


@router.get("", response_model=Envelope[list[BrandResponse]])
async def list_brands(
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    brands = await catalog_service.list_brands(db)
    return Envelope(data=[BrandResponse.model_validate(b) for b in brands])


@router.get("/{brand_id}", response_model=Envelope[BrandResponse])
async def get_brand(
    brand_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    brand = await catalog_service.get_brand(db, brand_id)
    return Envelope(data=BrandResponse.model_validate(brand))


@router.post(
    "",
    response_model=Envelope[BrandResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_brand(
    payload: BrandCreate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    brand = await catalog_service.create_brand(db, data=payload)
    return Envelope(data=BrandResponse.model_validate(brand))


@router.put("/{brand_id}", response_model=Envelope[BrandResponse])
async def update_brand(
    brand_id: uuid.UUID,
    payload: BrandUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    brand = await catalog_service.update_brand(db, brand_id=brand_id, data=payload)
    return Envelope(data=BrandResponse.model_validate(brand))


@router.delete("/{brand_id}", response_model=Envelope[MessageData])
async def delete_brand(
    brand_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    await catalog_service.delete_brand(db, brand_id=brand_id)
    return Envelope(data=MessageData(message="Brand deleted"))
