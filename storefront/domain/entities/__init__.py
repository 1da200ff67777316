"""Domain entities exchanged with the REST backend."""

from .address import SavedAddress
from .cart import CartItem
from .category import Category
from .product import Product
from .user import PostalAddress, User
from .wishlist import WishlistItem

__all__ = [
    "CartItem",
    "Category",
    "PostalAddress",
    "Product",
    "SavedAddress",
    "User",
    "WishlistItem",
]
