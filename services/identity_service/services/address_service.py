"""Saved addresses; a user has at most one default."""

import uuid

from libs.common.errors import NotFoundError
from services.identity_service.models import Address
from services.identity_service.schemas import AddressCreate, AddressUpdate
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession


class AddressService:
    async def list_addresses(
        self, db: AsyncSession, *, user_id: uuid.UUID
    ) -> list[Address]:
        result = await db.execute(
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _get_owned(
        self, db: AsyncSession, *, user_id: uuid.UUID, address_id: uuid.UUID
    ) -> Address:
        address = await db.get(Address, address_id, populate_existing=True)
        if address is None or address.user_id != user_id:
            raise NotFoundError("Address not found")
        return address

    async def _clear_default(
        self, db: AsyncSession, *, user_id: uuid.UUID, keep: uuid.UUID
    ) -> None:
        await db.execute(
            update(Address)
            .where(Address.user_id == user_id, Address.id != keep)
            .values(is_default=False)
            .execution_options(synchronize_session=False)
        )

    async def create(
        self, db: AsyncSession, *, user_id: uuid.UUID, data: AddressCreate
    ) -> Address:
        has_any = (
            await db.execute(select(Address.id).where(Address.user_id == user_id).limit(1))
        ).scalar_one_or_none() is not None

        address = Address(user_id=user_id, **data.model_dump())
        if not has_any:
            address.is_default = True
        db.add(address)
        await db.flush()
        if address.is_default:
            await self._clear_default(db, user_id=user_id, keep=address.id)
        await db.commit()
        return await self._get_owned(db, user_id=user_id, address_id=address.id)

    async def update(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
        data: AddressUpdate,
    ) -> Address:
        address = await self._get_owned(db, user_id=user_id, address_id=address_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(address, field, value)
        await db.flush()
        if address.is_default:
            await self._clear_default(db, user_id=user_id, keep=address.id)
        await db.commit()
        return await self._get_owned(db, user_id=user_id, address_id=address.id)

    async def set_default(
        self, db: AsyncSession, *, user_id: uuid.UUID, address_id: uuid.UUID
    ) -> Address:
        address = await self._get_owned(db, user_id=user_id, address_id=address_id)
        address.is_default = True
        await db.flush()
        await self._clear_default(db, user_id=user_id, keep=address.id)
        await db.commit()
        return await self._get_owned(db, user_id=user_id, address_id=address.id)

    async def delete(
        self, db: AsyncSession, *, user_id: uuid.UUID, address_id: uuid.UUID
    ) -> None:
        address = await self._get_owned(db, user_id=user_id, address_id=address_id)
        was_default = address.is_default
        await db.delete(address)
        await db.flush()

        if was_default:
            # Promote the oldest remaining address
            successor = (
                await db.execute(
                    select(Address)
                    .where(Address.user_id == user_id)
                    .order_by(Address.created_at)
                    .limit(1)
                )
            ).scalar_one_or_none()
            if successor is not None:
                successor.is_default = True
        await db.commit()
