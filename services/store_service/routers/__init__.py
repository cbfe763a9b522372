"""Store service routers package."""

from services.store_service.routers.brands import router as brands_router
from services.store_service.routers.cart import router as cart_router
from services.store_service.routers.categories import router as categories_router
from services.store_service.routers.listings import router as listings_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.products import router as products_router
from services.store_service.routers.reviews import router as reviews_router
from services.store_service.routers.wishlist import router as wishlist_router

__all__ = [
    "brands_router",
    "cart_router",
    "categories_router",
    "listings_router",
    "orders_router",
    "products_router",
    "reviews_router",
    "wishlist_router",
]
