"""Seller listing stock endpoint."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_roles
from libs.auth.models import AuthUser
from libs.common.responses import Envelope
from libs.db.session import get_async_db
from services.store_service.routers._deps import get_catalog_service
from services.store_service.schemas import ListingResponse, ListingStockUpdate
from services.store_service.services.catalog_service import CatalogService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/listings", tags=["listings"])


@router.put("/{listing_id}/stock", response_model=Envelope[ListingResponse])
async def update_listing_stock(
    listing_id: uuid.UUID,
    payload: ListingStockUpdate,
    current_user: AuthUser = Depends(require_roles("seller", "admin")),
    db: AsyncSession = Depends(get_async_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
):
    listing = await catalog_service.update_listing_stock(
        db,
        listing_id=listing_id,
        actor=current_user,
        stock_quantity=payload.stock_quantity,
    )
    return Envelope(data=ListingResponse.model_validate(listing))
