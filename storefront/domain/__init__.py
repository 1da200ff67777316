"""Domain package."""

from .entities import CartItem, PostalAddress, Product, SavedAddress, User, WishlistItem
from .order import Order, OrderStatus, PaymentStatus, ShippingAddress
from .value_objects import PaymentMethod, SortOrder, UserRole

__all__ = [
    # Entities
    "CartItem",
    "Order",
    "PostalAddress",
    "Product",
    "SavedAddress",
    "ShippingAddress",
    "User",
    "WishlistItem",
    # Value Objects
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "SortOrder",
    "UserRole",
]
