"""
Model factories and small builders for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(stock=5)
    db_session.add(product)
    await db_session.commit()

The async ``make_*`` helpers insert and commit in one step.
"""

import uuid
from decimal import Decimal

from libs.auth.models import AuthUser
from libs.auth.security import create_access_token, hash_password

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

DEFAULT_PASSWORD = "password123"


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


def _unique_slug(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# Identity Service
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(role_id, **overrides):
        from services.identity_service.models import User

        defaults = {
            "id": _uuid(),
            "first_name": "Test",
            "last_name": "User",
            "email": _unique_email(),
            "password_hash": hash_password(DEFAULT_PASSWORD),
            "role_id": role_id,
            "is_active": True,
            "is_email_verified": True,
        }
        defaults.update(overrides)
        return User(**defaults)


class SellerFactory:
    @staticmethod
    def create(user_id, **overrides):
        from services.identity_service.models import Seller, SellerStatus

        defaults = {
            "id": _uuid(),
            "user_id": user_id,
            "business_name": "Test Shop",
            "business_email": _unique_email(),
            "business_phone": "+15550100",
            "tax_id": "TAX-123",
            "status": SellerStatus.APPROVED,
            "is_verified": True,
        }
        defaults.update(overrides)
        return Seller(**defaults)


class AddressFactory:
    @staticmethod
    def create(user_id, **overrides):
        from services.identity_service.models import Address

        defaults = {
            "user_id": user_id,
            "full_name": "Test User",
            "phone": "+15550101",
            "address_line1": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "country": "USA",
            "zip_code": "62701",
        }
        defaults.update(overrides)
        return Address(**defaults)


# ---------------------------------------------------------------------------
# Store Service
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Product

        slug = overrides.pop("slug", _unique_slug("product"))
        defaults = {
            "id": _uuid(),
            "name": f"Product {slug[-8:]}",
            "slug": slug,
            "description": "A product used in tests",
            "price": Decimal("100.00"),
            "stock": 10,
            "is_active": True,
        }
        defaults.update(overrides)
        return Product(**defaults)


class ListingFactory:
    @staticmethod
    def create(product_id, seller_id, **overrides):
        from services.store_service.models import ProductListing

        defaults = {
            "id": _uuid(),
            "product_id": product_id,
            "seller_id": seller_id,
            "price": Decimal("90.00"),
            "stock_quantity": 5,
            "is_available": True,
        }
        defaults.update(overrides)
        return ProductListing(**defaults)


class CategoryFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Category

        slug = overrides.pop("slug", _unique_slug("category"))
        defaults = {
            "id": _uuid(),
            "name": f"Category {slug[-8:]}",
            "slug": slug,
            "level": 0,
        }
        defaults.update(overrides)
        return Category(**defaults)


# ---------------------------------------------------------------------------
# Async builders
# ---------------------------------------------------------------------------


async def make_user(db, role="customer", **overrides):
    """Insert a user holding the named (seeded) role."""
    from services.identity_service.services.auth_service import get_role, load_user

    role_row = await get_role(db, role)
    user = UserFactory.create(role_row.id, **overrides)
    db.add(user)
    await db.commit()
    return await load_user(db, user.id)


async def make_seller(db, **overrides):
    """Insert a user with the seller role and an approved profile."""
    user = await make_user(db, role="seller")
    seller = SellerFactory.create(user.id, **overrides)
    db.add(seller)
    await db.commit()
    return user, seller


async def make_product(db, **overrides):
    product = ProductFactory.create(**overrides)
    db.add(product)
    await db.commit()
    return product


async def make_listing(db, product_id, seller_id, **overrides):
    listing = ListingFactory.create(product_id, seller_id, **overrides)
    db.add(listing)
    await db.commit()
    return listing


def actor_for(user, seller=None) -> AuthUser:
    """The request principal for a loaded user."""
    return AuthUser(
        user_id=user.id,
        email=user.email,
        role=user.role.name,
        seller_id=seller.id if seller is not None else None,
    )


def auth_headers(user) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role.name)
    return {"Authorization": f"Bearer {token}"}


def shipping_address(**overrides) -> dict:
    address = {
        "full_name": "Test User",
        "phone": "+15550101",
        "address_line1": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "country": "USA",
        "zip_code": "62701",
    }
    address.update(overrides)
    return address


def order_payload(**overrides) -> dict:
    payload = {
        "shipping_address": shipping_address(),
        "payment": {"method": "card"},
    }
    payload.update(overrides)
    return payload


def order_data(**overrides):
    from services.store_service.schemas import OrderCreate

    return OrderCreate.model_validate(order_payload(**overrides))
