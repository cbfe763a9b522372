"""Service lookups shared by identity routers."""

from fastapi import Request
from services.identity_service.services.address_service import AddressService
from services.identity_service.services.auth_service import AuthService
from services.identity_service.services.seller_service import SellerService
from services.identity_service.services.user_service import UserService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_address_service(request: Request) -> AddressService:
    return request.app.state.address_service


def get_seller_service(request: Request) -> SellerService:
    return request.app.state.seller_service
