"""Cart line entity."""
from __future__ import annotations

from pydantic import Field

from storefront.domain.entities.base import ApiModel
from storefront.domain.entities.product import Product


class CartItem(ApiModel):
    """One product line of the server-held cart."""

    product: Product
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity
