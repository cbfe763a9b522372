"""Service lookups shared by store routers."""

from fastapi import Request
from services.store_service.services.cart_service import CartService
from services.store_service.services.catalog_service import CatalogService
from services.store_service.services.order_service import OrderService
from services.store_service.services.review_service import ReviewService
from services.store_service.services.wishlist_service import WishlistService


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_cart_service(request: Request) -> CartService:
    return request.app.state.cart_service


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_review_service(request: Request) -> ReviewService:
    return request.app.state.review_service


def get_wishlist_service(request: Request) -> WishlistService:
    return request.app.state.wishlist_service
