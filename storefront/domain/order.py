"""Order domain types and status enums."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, model_validator

from storefront.domain.entities.base import ApiModel
from storefront.domain.entities.cart import CartItem
from storefront.domain.entities.user import User

PLACEHOLDER_IMAGE = "/placeholder.png"


class OrderStatus(str, Enum):
    """Order lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def normalize(cls, status: Any) -> OrderStatus:
        if isinstance(status, cls):
            return status
        return cls(str(status or "").strip().lower())


class PaymentStatus(str, Enum):
    """Payment state stored on the order."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class ShippingAddress(ApiModel):
    """Contact and delivery fields sent with every order."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


def _order_line(item: dict[str, Any]) -> dict[str, Any]:
    """Rebuild a cart-style line from the price/name captured at order time."""
    product = item.get("product")
    details = product if isinstance(product, dict) else {}
    if details:
        product_id = details.get("_id") or details.get("id") or "unknown"
    elif isinstance(product, str):
        product_id = product
    else:
        product_id = "unknown"
    price = item.get("priceAtOrder") or details.get("price") or 0
    images = details.get("images") or []
    image = item.get("imageAtOrder") or (images[0] if images else PLACEHOLDER_IMAGE)
    return {
        "quantity": item.get("quantity") or 1,
        "product": {
            "id": product_id,
            "name": item.get("nameAtOrder") or details.get("name") or "Unknown Product",
            "price": price,
            "mrp": price,
            "images": [image],
            "stock": 1,
        },
    }


class Order(ApiModel):
    """Read-only client projection of a server-side order."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str = ""
    items: list[CartItem] = Field(default_factory=list)
    total: float = Field(0, validation_alias=AliasChoices("total", "totalPrice", "totalAmount"))
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: ShippingAddress = Field(default_factory=ShippingAddress)
    payment_method: str = "cod"
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: str | None = None
    updated_at: str | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_backend_order(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        owner = data.get("userId")
        owner_details = owner if isinstance(owner, dict) else {}
        if owner_details:
            data["userId"] = owner_details.get("_id") or owner_details.get("id") or ""

        data["items"] = [
            _order_line(item) if isinstance(item, dict) else item
            for item in data.get("items") or []
        ]

        if "shippingAddress" in data or owner_details:
            address = dict(data.get("shippingAddress") or {})
            for key in ("firstName", "lastName", "email"):
                if not address.get(key) and owner_details.get(key):
                    address[key] = owner_details[key]
            data["shippingAddress"] = address

        status = data.get("status")
        if isinstance(status, str) and not isinstance(status, Enum):
            data["status"] = status.strip().lower() or OrderStatus.PENDING.value
        return data

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


def shipping_address_from_user(user: User | None) -> ShippingAddress:
    """Prefill shipping fields from the profile of the signed-in user."""
    if user is None:
        return ShippingAddress()
    address = user.address
    return ShippingAddress(
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone=user.phone,
        street=address.street if address else "",
        city=address.city if address else "",
        state=address.state if address else "",
        pincode=address.pincode if address else "",
    )
