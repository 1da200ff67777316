"""Catalog product entity."""
from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from storefront.core.formatting import calculate_discount
from storefront.domain.entities.base import ApiModel


class Product(ApiModel):
    """Product as listed in the catalog, cart lines and wishlist."""

    id: str
    category_id: str = ""
    name: str = ""
    images: list[str] = Field(default_factory=list)
    description: str = ""
    short_description: str = ""
    mrp: float = 0
    price: float = 0
    rating: float = 0
    review_count: int = 0
    sound_level: str | None = None
    burn_time: str = ""
    stock: int = 0
    features: list[str] = Field(default_factory=list)
    specifications: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    is_new_arrival: bool = False
    is_best_seller: bool = False
    is_on_sale: bool = False
    created_at: str | None = None

    @field_validator("category_id", mode="before")
    @classmethod
    def _flatten_category(cls, v: Any) -> Any:
        """The backend may populate the category as ``{"_id": ..., "name": ...}``."""
        if isinstance(v, dict):
            return v.get("_id") or v.get("id") or "unknown"
        if v is None:
            return ""
        return v

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @property
    def discount_percent(self) -> int:
        return calculate_discount(self.mrp, self.price)
