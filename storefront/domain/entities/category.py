"""Catalog category entity."""
from __future__ import annotations

from pydantic import Field

from storefront.domain.entities.base import ApiModel


class Category(ApiModel):
    id: str
    name: str = ""
    description: str = ""
    icon: str = ""
    hero_image: str = ""
    product_count: int | None = Field(None, description="Filled in by some list endpoints only")
