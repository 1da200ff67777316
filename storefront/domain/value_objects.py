"""Value objects shared by the storefront domain."""
from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


class PaymentMethod(str, Enum):
    """Payment methods offered at checkout."""

    CARD = "card"
    UPI = "upi"
    COD = "cod"

    @property
    def is_online(self) -> bool:
        """Card and UPI are both routed through the hosted gateway."""
        return self in (PaymentMethod.CARD, PaymentMethod.UPI)


class SortOrder(str, Enum):
    """Catalog sort keys."""

    PRICE_LOW_HIGH = "price-low-high"
    PRICE_HIGH_LOW = "price-high-low"
    RATING = "rating"
    NAME = "name"
    NEWEST = "newest"
