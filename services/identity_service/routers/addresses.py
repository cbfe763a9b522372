"""Address book endpoints for the signed-in user."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.responses import Envelope, MessageData
from libs.db.session import get_async_db
from services.identity_service.routers._deps import get_address_service
from services.identity_service.schemas import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
)
from services.identity_service.services.address_service import AddressService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.get("", response_model=Envelope[list[AddressResponse]])
async def list_addresses(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    address_service: AddressService = Depends(get_address_service),
):
    addresses = await address_service.list_addresses(db, user_id=current_user.user_id)
    return Envelope(data=[AddressResponse.model_validate(a) for a in addresses])


@router.post(
    "",
    response_model=Envelope[AddressResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_address(
    payload: AddressCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    address_service: AddressService = Depends(get_address_service),
):
    address = await address_service.create(
        db, user_id=current_user.user_id, data=payload
    )
    return Envelope(data=AddressResponse.model_validate(address))


@router.put("/{address_id}", response_model=Envelope[AddressResponse])
async def update_address(
    address_id: uuid.UUID,
    payload: AddressUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    address_service: AddressService = Depends(get_address_service),
):
    address = await address_service.update(
        db, user_id=current_user.user_id, address_id=address_id, data=payload
    )
    return Envelope(data=AddressResponse.model_validate(address))


@router.put("/{address_id}/default", response_model=Envelope[AddressResponse])
async def set_default_address(
    address_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    address_service: AddressService = Depends(get_address_service),
):
    address = await address_service.set_default(
        db, user_id=current_user.user_id, address_id=address_id
    )
    return Envelope(data=AddressResponse.model_validate(address))


@router.delete("/{address_id}", response_model=Envelope[MessageData])
async def delete_address(
    address_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    address_service: AddressService = Depends(get_address_service),
):
    await address_service.delete(
        db, user_id=current_user.user_id, address_id=address_id
    )
    return Envelope(data=MessageData(message="Address deleted"))
