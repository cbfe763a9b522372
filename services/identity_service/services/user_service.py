"""Profile self-service and admin user management."""

import uuid
from typing import Optional

from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from services.identity_service.models import Role, RoleName, User
from services.identity_service.schemas import UserUpdate
from services.identity_service.services.auth_service import get_role, load_user
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class UserService:
    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await load_user(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(
        self, db: AsyncSession, *, user_id: uuid.UUID, data: UserUpdate
    ) -> User:
        user = await self.get_user(db, user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(user, field, value.strip() if isinstance(value, str) else value)
        await db.commit()
        return await self.get_user(db, user_id)

    async def list_users(
        self,
        db: AsyncSession,
        *,
        page: int = 1,
        limit: int = 20,
        role: Optional[RoleName] = None,
    ) -> tuple[list[User], int]:
        query = select(User)
        count_query = select(func.count(User.id))
        if role is not None:
            query = query.join(Role, User.role_id == Role.id).where(
                Role.name == role.value
            )
            count_query = count_query.join(Role, User.role_id == Role.id).where(
                Role.name == role.value
            )

        total = (await db.execute(count_query)).scalar_one()
        result = await db.execute(
            query.order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def assign_role(
        self, db: AsyncSession, *, user_id: uuid.UUID, role_name: RoleName
    ) -> User:
        user = await self.get_user(db, user_id)
        role = await get_role(db, role_name)
        user.role_id = role.id
        await db.commit()
        logger.info("User %s assigned role %s", user_id, role_name.value)
        return await self.get_user(db, user_id)

    async def delete_user(self, db: AsyncSession, *, user_id: uuid.UUID) -> None:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        await db.delete(user)
        await db.commit()
        logger.info("User %s deleted", user_id)
