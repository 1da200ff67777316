"""Wishlist entry entity."""
from __future__ import annotations

from typing import Any

from pydantic import model_validator

from storefront.domain.entities.base import ApiModel
from storefront.domain.entities.product import Product


class WishlistItem(ApiModel):
    """A saved product. The backend returns bare products; the entry wraps one."""

    product: Product
    added_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _wrap_product(cls, data: Any) -> Any:
        if isinstance(data, dict) and "product" not in data:
            return {"product": data, "addedAt": data.get("createdAt")}
        return data

    @property
    def id(self) -> str:
        return self.product.id
