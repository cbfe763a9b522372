"""Seller onboarding: application, admin review and the seller profile.

Lifecycle::

    pending -> approved -> suspended
    pending -> rejected

Approval also upgrades the linked user's role to ``seller``.
"""

import uuid
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.emails.notifier import EmailNotifier
from libs.common.errors import (
    ConflictError,
    IllegalStatusTransitionError,
    NotFoundError,
)
from libs.common.logging import get_logger
from services.identity_service.models import RoleName, Seller, SellerStatus, User
from services.identity_service.schemas import (
    SellerApplyRequest,
    SellerRegisterRequest,
    SellerStats,
    SellerUpdate,
)
from services.identity_service.services.auth_service import (
    AuthService,
    get_role,
    load_user,
)
from services.store_service.models import OrderItem, OrderStatus, Product
from sqlalchemy import distinct, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

REVENUE_STATUSES = (
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)


class SellerService:
    def __init__(self, auth_service: AuthService, notifier: EmailNotifier):
        self.auth_service = auth_service
        self.notifier = notifier

    async def get_seller(self, db: AsyncSession, seller_id: uuid.UUID) -> Seller:
        seller = await db.get(Seller, seller_id, populate_existing=True)
        if seller is None:
            raise NotFoundError("Seller not found")
        return seller

    async def get_by_user(self, db: AsyncSession, user_id: uuid.UUID) -> Seller:
        result = await db.execute(
            select(Seller)
            .where(Seller.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        seller = result.scalar_one_or_none()
        if seller is None:
            raise NotFoundError("Seller profile not found")
        return seller

    def _build_profile(self, user_id: uuid.UUID, data: SellerApplyRequest) -> Seller:
        return Seller(
            user_id=user_id,
            business_name=data.business_name.strip(),
            business_email=data.business_email,
            business_phone=data.business_phone,
            description=data.description,
            logo_url=data.logo_url,
            banner_url=data.banner_url,
            business_address=(
                data.business_address.model_dump() if data.business_address else None
            ),
            tax_id=data.tax_id,
            payout_details=data.payout_details,
            status=SellerStatus.PENDING,
            is_verified=False,
        )

    async def _ensure_no_profile(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        existing = await db.execute(select(Seller.id).where(Seller.user_id == user_id))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Seller profile already exists", field="user_id")

    async def register_seller(
        self, db: AsyncSession, *, data: SellerRegisterRequest
    ) -> tuple[User, Seller]:
        """Create a customer account plus a pending seller profile."""
        user, raw_token = await self.auth_service.create_user(
            db, data=data.to_register_request(), role_name=RoleName.CUSTOMER
        )
        seller = self._build_profile(user.id, data)
        db.add(seller)
        await db.commit()

        logger.info("Seller %s registered for user %s (pending)", seller.id, user.id)
        await self.notifier.send_verification_email(user.email, raw_token)
        return await load_user(db, user.id), await self.get_seller(db, seller.id)

    async def apply(
        self, db: AsyncSession, *, user_id: uuid.UUID, data: SellerApplyRequest
    ) -> Seller:
        await self._ensure_no_profile(db, user_id)
        seller = self._build_profile(user_id, data)
        db.add(seller)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Seller profile already exists", field="user_id")

        logger.info("User %s applied to become a seller", user_id)
        return await self.get_seller(db, seller.id)

    # ------------------------------------------------------------------
    # Admin review
    # ------------------------------------------------------------------

    def _require_status(self, seller: Seller, allowed: SellerStatus, target) -> None:
        if seller.status != allowed:
            raise IllegalStatusTransitionError(seller.status.value, target.value)

    async def _notify(self, db: AsyncSession, seller: Seller, reason=None) -> None:
        email = (
            await db.execute(select(User.email).where(User.id == seller.user_id))
        ).scalar_one_or_none()
        if email:
            await self.notifier.send_seller_status(
                email, seller.business_name, seller.status.value, reason
            )

    async def approve(self, db: AsyncSession, *, seller_id: uuid.UUID) -> Seller:
        seller = await self.get_seller(db, seller_id)
        self._require_status(seller, SellerStatus.PENDING, SellerStatus.APPROVED)

        seller.status = SellerStatus.APPROVED
        seller.is_verified = True
        seller.verified_at = utc_now()
        seller.rejection_reason = None

        user = await db.get(User, seller.user_id)
        if user is not None:
            user.role_id = (await get_role(db, RoleName.SELLER)).id

        await db.commit()
        logger.info("Seller %s approved", seller_id)
        await self._notify(db, seller)
        return await self.get_seller(db, seller_id)

    async def reject(
        self, db: AsyncSession, *, seller_id: uuid.UUID, reason: Optional[str]
    ) -> Seller:
        seller = await self.get_seller(db, seller_id)
        self._require_status(seller, SellerStatus.PENDING, SellerStatus.REJECTED)

        seller.status = SellerStatus.REJECTED
        seller.is_verified = False
        seller.rejection_reason = reason
        await db.commit()
        logger.info("Seller %s rejected", seller_id)
        await self._notify(db, seller, reason)
        return await self.get_seller(db, seller_id)

    async def suspend(
        self, db: AsyncSession, *, seller_id: uuid.UUID, reason: Optional[str]
    ) -> Seller:
        seller = await self.get_seller(db, seller_id)
        self._require_status(seller, SellerStatus.APPROVED, SellerStatus.SUSPENDED)

        seller.status = SellerStatus.SUSPENDED
        seller.suspension_reason = reason
        await db.commit()
        logger.info("Seller %s suspended", seller_id)
        await self._notify(db, seller, reason)
        return await self.get_seller(db, seller_id)

    # ------------------------------------------------------------------
    # Profile and listing
    # ------------------------------------------------------------------

    async def update_profile(
        self, db: AsyncSession, *, user_id: uuid.UUID, data: SellerUpdate
    ) -> Seller:
        seller = await self.get_by_user(db, user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(seller, field, value)
        await db.commit()
        return await self.get_seller(db, seller.id)

    async def list_sellers(
        self,
        db: AsyncSession,
        *,
        page: int = 1,
        limit: int = 20,
        status: Optional[SellerStatus] = None,
        is_verified: Optional[bool] = None,
    ) -> tuple[list[Seller], int]:
        conditions = []
        if status is not None:
            conditions.append(Seller.status == status)
        if is_verified is not None:
            conditions.append(Seller.is_verified.is_(is_verified))

        total = (
            await db.execute(select(func.count(Seller.id)).where(*conditions))
        ).scalar_one()
        result = await db.execute(
            select(Seller)
            .where(*conditions)
            .order_by(Seller.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def stats(self, db: AsyncSession, *, seller_id: uuid.UUID) -> SellerStats:
        total_products, active_products = (
            await db.execute(
                select(
                    func.count(Product.id),
                    func.count(Product.id).filter(Product.is_active.is_(True)),
                ).where(Product.seller_id == seller_id)
            )
        ).one()
        average_rating = (
            await db.execute(
                select(func.avg(Product.average_rating)).where(
                    Product.seller_id == seller_id, Product.total_reviews > 0
                )
            )
        ).scalar_one_or_none()

        total_orders = (
            await db.execute(
                select(func.count(distinct(OrderItem.order_id))).where(
                    OrderItem.seller_id == seller_id
                )
            )
        ).scalar_one()
        revenue = (
            await db.execute(
                select(
                    func.coalesce(
                        func.sum(OrderItem.price_at_purchase * OrderItem.quantity), 0
                    )
                ).where(
                    OrderItem.seller_id == seller_id,
                    OrderItem.status.in_(REVENUE_STATUSES),
                )
            )
        ).scalar_one()

        return SellerStats(
            total_products=total_products,
            active_products=active_products,
            total_orders=total_orders,
            total_revenue=Decimal(str(revenue)).quantize(Decimal("0.01")),
            average_rating=round(float(average_rating), 1) if average_rating else 0.0,
        )
