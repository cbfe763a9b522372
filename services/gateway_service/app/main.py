"""FastAPI application entrypoint for the marketplace API.

Every bounded context is mounted in-process under ``/api/v1``; the service
objects are built once here and shared through ``app.state``.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from libs.common.config import get_settings
from libs.common.emails.notifier import EmailNotifier
from libs.common.errors import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.identity_service.routers import (
    addresses_router,
    auth_router,
    sellers_router,
    users_router,
)
from services.identity_service.services.address_service import AddressService
from services.identity_service.services.auth_service import AuthService
from services.identity_service.services.seller_service import SellerService
from services.identity_service.services.user_service import UserService
from services.store_service.routers import (
    brands_router,
    cart_router,
    categories_router,
    listings_router,
    orders_router,
    products_router,
    reviews_router,
    wishlist_router,
)
from services.store_service.services.cart_service import CartService
from services.store_service.services.catalog_service import CatalogService
from services.store_service.services.order_service import OrderService
from services.store_service.services.review_service import ReviewService
from services.store_service.services.wishlist_service import WishlistService

API_PREFIX = "/api/v1"


def init_services(app: FastAPI, notifier: EmailNotifier | None = None) -> None:
    """Build the service graph and attach it to ``app.state``."""
    settings = get_settings()
    notifier = notifier or EmailNotifier()

    auth_service = AuthService(notifier)
    catalog_service = CatalogService()
    cart_service = CartService(settings)

    app.state.notifier = notifier
    app.state.auth_service = auth_service
    app.state.user_service = UserService()
    app.state.address_service = AddressService()
    app.state.seller_service = SellerService(auth_service, notifier)
    app.state.catalog_service = catalog_service
    app.state.cart_service = cart_service
    app.state.order_service = OrderService(notifier, cart_service, settings)
    app.state.review_service = ReviewService(catalog_service)
    app.state.wishlist_service = WishlistService(cart_service)


def create_app(notifier: EmailNotifier | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    app = FastAPI(
        title="Marketplace API",
        version="0.1.0",
        description="Multi-vendor e-commerce backend: catalog, cart, orders and sellers.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    init_services(app, notifier)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    for router in (
        auth_router,
        users_router,
        addresses_router,
        sellers_router,
        products_router,
        categories_router,
        brands_router,
        listings_router,
        cart_router,
        orders_router,
        reviews_router,
        wishlist_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    return app


app = create_app()
