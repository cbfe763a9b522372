"""Identity Service models package."""

from services.identity_service.models.enums import AddressType, RoleName, SellerStatus
from services.identity_service.models.sellers import Seller
from services.identity_service.models.users import (
    Address,
    Permission,
    Role,
    User,
    role_permissions,
)

__all__ = [
    "Address",
    "AddressType",
    "Permission",
    "Role",
    "RoleName",
    "Seller",
    "SellerStatus",
    "User",
    "role_permissions",
]
