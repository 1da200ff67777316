"""Saved delivery address entity."""
from __future__ import annotations

from pydantic import Field

from storefront.domain.entities.base import ApiModel

ADDRESS_REQUIRED_FIELDS = ("label", "name", "street", "city", "state", "pincode", "phone")


class SavedAddress(ApiModel):
    """Address book entry of the signed-in user."""

    id: str
    label: str = ""
    name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    phone: str = ""
    is_default: bool = Field(False, description="Used to prefill checkout")
