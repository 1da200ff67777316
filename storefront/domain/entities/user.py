"""User entity as returned by the auth and profile endpoints."""
from __future__ import annotations

from pydantic import Field

from storefront.domain.entities.base import ApiModel
from storefront.domain.value_objects import UserRole


class PostalAddress(ApiModel):
    """Street address embedded in a user profile."""

    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class User(ApiModel):
    """User entity with type-safe fields."""

    id: str = Field(..., description="Backend user id")
    email: str = Field("", description="Login email")
    first_name: str = Field("", description="Given name")
    last_name: str = Field("", description="Family name")
    phone: str = Field("", description="Mobile number")
    address: PostalAddress | None = Field(None, description="Primary postal address")
    role: UserRole = Field(UserRole.USER, description="Access role")
    created_at: str | None = Field(None, description="Registration timestamp")
    is_active: bool = Field(True, description="Account enabled")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
