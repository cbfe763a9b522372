"""Store Service models package."""

from services.store_service.models.catalog import (
    Brand,
    Category,
    Product,
    ProductImage,
    ProductListing,
    ProductVariant,
    product_categories,
)
from services.store_service.models.commerce import (
    Cart,
    CartItem,
    Order,
    OrderItem,
    OrderSequence,
)
from services.store_service.models.enums import (
    ListingCondition,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    VoteType,
)
from services.store_service.models.reviews import Review, ReviewVote
from services.store_service.models.wishlist import Wishlist, WishlistItem

__all__ = [
    "Brand",
    "Cart",
    "CartItem",
    "Category",
    "ListingCondition",
    "Order",
    "OrderItem",
    "OrderSequence",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "ProductImage",
    "ProductListing",
    "ProductVariant",
    "Review",
    "ReviewVote",
    "VoteType",
    "Wishlist",
    "WishlistItem",
    "product_categories",
]
