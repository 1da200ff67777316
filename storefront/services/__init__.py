"""Stores: stateful coordinators over the session handle and the REST client."""

from .address_service import AddressStore
from .auth_service import AuthStore
from .cart_service import CartStore
from .category_service import CategoryStore
from .checkout_service import CheckoutFlow, CheckoutState, CheckoutStep
from .content_service import ContentStore
from .order_service import OrderStore
from .product_service import ProductStore
from .results import ActionResult
from .session import Session, SessionPhase
from .wishlist_service import WishlistStore

__all__ = [
    "ActionResult",
    "AddressStore",
    "AuthStore",
    "CartStore",
    "CategoryStore",
    "CheckoutFlow",
    "CheckoutState",
    "CheckoutStep",
    "ContentStore",
    "OrderStore",
    "ProductStore",
    "Session",
    "SessionPhase",
    "WishlistStore",
]
