"""Identity service routers package."""

from services.identity_service.routers.addresses import router as addresses_router
from services.identity_service.routers.auth import router as auth_router
from services.identity_service.routers.sellers import router as sellers_router
from services.identity_service.routers.users import router as users_router

__all__ = [
    "addresses_router",
    "auth_router",
    "sellers_router",
    "users_router",
]
