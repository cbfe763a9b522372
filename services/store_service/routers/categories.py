"""Category endpoints; writes are admin only."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.responses import Envelope, MessageData
from libs.db.session import get_async_db
from services.store_service.routers._deps import get_catalog_service
from services.store_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryTree,
    CategoryUpdate,
)
from services.store_service.services.catalog_service import CatalogService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=Envelope[list[CategoryResponse]])
async def list_categories(
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    categories = await catalog_service.list_categories(db)
    return Envelope(data=[CategoryResponse.model_validate(c) for c in categories])


@router.get("/tree", response_model=Envelope[list[CategoryTree]])
async def category_tree(
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    return Envelope(data=await catalog_service.category_tree(db))


@router.get("/{id_or_slug}", response_model=Envelope[CategoryResponse])
async def get_category(
    id_or_slug: str,
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    category = await catalog_service.get_category(db, id_or_slug)
    return Envelope(data=CategoryResponse.model_validate(category))


@router.post(
    "",
    response_model=Envelope[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    payload: CategoryCreate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    category = await catalog_service.create_category(db, data=payload)
    return Envelope(data=CategoryResponse.model_validate(category))


@router.put("/{category_id}", response_model=Envelope[CategoryResponse])
async def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    category = await catalog_service.update_category(
        db, category_id=category_id, data=payload
    )
    return Envelope(data=CategoryResponse.model_validate(category))


@router.delete("/{category_id}", response_model=Envelope[MessageData])
async def delete_category(
    category_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    await catalog_service.delete_category(db, category_id=category_id)
    return Envelope(data=MessageData(message="Category deleted"))
