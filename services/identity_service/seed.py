"""Reference roles and permissions.

Roles are looked up by name at registration and approval time, so they must
exist before the API accepts traffic. ``seed_roles`` is idempotent.
"""

from libs.common.logging import get_logger
from services.identity_service.models import Permission, Role, RoleName
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

PERMISSIONS = {
    "all:all": "Unrestricted access",
    "product:read": "Browse the catalog",
    "product:create": "Create products and listings",
    "product:update": "Edit own products and listings",
    "product:delete": "Delete own products",
    "order:create": "Place orders",
    "order:read": "View orders",
    "order:update": "Update order fulfilment status",
    "review:create": "Write product reviews",
    "review:moderate": "Approve reviews",
    "seller:apply": "Apply for a seller profile",
    "seller:manage": "Review seller applications",
    "user:read": "View user accounts",
    "user:manage": "Manage user accounts and roles",
}

ROLES = {
    RoleName.CUSTOMER: (
        "Shopper account",
        0,
        ["product:read", "order:create", "order:read", "review:create", "seller:apply"],
    ),
    RoleName.SELLER: (
        "Approved marketplace seller",
        10,
        [
            "product:read",
            "product:create",
            "product:update",
            "product:delete",
            "order:create",
            "order:read",
            "order:update",
            "review:create",
        ],
    ),
    RoleName.SUPPORT: (
        "Customer support agent",
        50,
        ["product:read", "order:read", "user:read", "review:moderate"],
    ),
    RoleName.ADMIN: ("Administrator", 100, ["all:all"]),
}


async def seed_roles(db: AsyncSession) -> list[Role]:
    """Insert missing permissions and roles, then sync role grants."""
    existing = {
        p.name: p for p in (await db.execute(select(Permission))).scalars().all()
    }
    for name, description in PERMISSIONS.items():
        if name not in existing:
            resource, _, action = name.partition(":")
            permission = Permission(
                name=name, resource=resource, action=action, description=description
            )
            db.add(permission)
            existing[name] = permission
    await db.flush()

    roles = {
        r.name: r
        for r in (
            await db.execute(select(Role).options(selectinload(Role.permissions)))
        ).scalars().all()
    }
    for role_name, (description, priority, grants) in ROLES.items():
        role = roles.get(role_name.value)
        if role is None:
            role = Role(name=role_name.value, description=description, permissions=[])
            db.add(role)
            roles[role_name.value] = role
            logger.info("Created role %s", role_name.value)
        role.priority = priority
        role.permissions = [existing[name] for name in grants]

    await db.commit()
    return list(roles.values())
