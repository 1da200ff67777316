"""
Cart store.

The server is the single source of truth: every mutation is a request
followed by a wholesale replace of ``items`` with the array the server
returns. Nothing is applied locally ahead of the response.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from pydantic import TypeAdapter, ValidationError

from storefront.core.cart_math import (
    calc_amount_to_free_shipping,
    calc_item_count,
    calc_savings,
    calc_shipping,
    calc_total,
)
from storefront.core.config import ShippingPolicy
from storefront.core.constants import (
    MSG_INVALID_RESPONSE,
    MSG_LOGIN_TO_ADD,
    MSG_LOGIN_TO_CLEAR,
    MSG_LOGIN_TO_MODIFY,
)
from storefront.core.exceptions import InvalidResponseError, StorefrontException, error_message
from storefront.domain.entities.cart import CartItem
from storefront.domain.entities.product import Product
from storefront.integrations.api_client import ApiClient, expect_list, path_segment
from storefront.services.results import ActionResult, failure, success
from storefront.services.session import Session

logger = logging.getLogger("storefront.cart")

_items_adapter: TypeAdapter[list[CartItem]] = TypeAdapter(list[CartItem])

MSG_SESSION_CHANGED = "Session changed before the cart response arrived"


def parse_cart(payload: Any) -> list[CartItem]:
    """Validate a server cart array into typed lines."""
    try:
        return _items_adapter.validate_python(expect_list(payload))
    except ValidationError as exc:
        raise InvalidResponseError(MSG_INVALID_RESPONSE, payload=payload) from exc


class CartStore:
    """Server-backed cart of the signed-in user. Anonymous users have no cart."""

    def __init__(self, session: Session, api: ApiClient, *, shipping: ShippingPolicy | None = None):
        self.session = session
        self.api = api
        self.shipping_policy = shipping or ShippingPolicy()
        self.items: list[CartItem] = []
        self.is_loading = session.is_loading
        self.error: str | None = None
        self._auth_key: tuple[bool, bool, int] | None = None
        self.unsubscribe = session.add_listener(self._on_session_change)

    # ----- session coupling -----

    def _on_session_change(self, session: Session) -> Awaitable[ActionResult] | None:
        """Re-fetch when authentication or its loading flag changes."""
        key = (session.is_authenticated, session.is_loading, session.generation)
        if key == self._auth_key:
            return None
        self._auth_key = key

        if session.is_loading:
            self.is_loading = True
            return None
        if not session.is_authenticated:
            self._replace([], error=None)
            return None
        return self.fetch_cart()

    def _replace(self, items: list[CartItem] | None, *, error: str | None) -> None:
        if items is not None:
            self.items = items
        self.is_loading = False
        self.error = error

    # ----- actions -----

    async def fetch_cart(self) -> ActionResult:
        if not self.session.is_authenticated:
            self._replace([], error=None)
            return success([])

        generation = self.session.generation
        self.is_loading = True
        logger.debug("Fetching cart from API...")
        try:
            items = parse_cart(await self.api.get("/cart"))
        except StorefrontException as exc:
            message = error_message(exc, "Failed to load cart")
            logger.error("Error fetching cart: %s", message)
            if generation == self.session.generation:
                self._replace([], error=message)
            return failure(message)

        if generation != self.session.generation:
            logger.debug("Dropping cart response for an ended session")
            return failure(MSG_SESSION_CHANGED)
        self._replace(items, error=None)
        logger.debug("Cart fetched successfully: %s items", len(items))
        return success(items)

    async def _mutate(
        self,
        request: Callable[[], Awaitable[Any]],
        *,
        login_message: str,
        fallback: str,
        clear: bool = False,
    ) -> ActionResult:
        if not self.session.is_authenticated:
            self._replace(None, error=login_message)
            return failure(login_message)

        generation = self.session.generation
        self.is_loading = True
        try:
            items = parse_cart(await request())
        except StorefrontException as exc:
            message = error_message(exc, fallback)
            logger.error("%s: %s", fallback, message)
            self._replace(None, error=message)
            return failure(message)

        if generation != self.session.generation:
            logger.debug("Dropping cart response for an ended session")
            return failure(MSG_SESSION_CHANGED)
        self._replace([] if clear else items, error=None)
        return success(self.items)

    async def add_to_cart(self, product: Product, quantity: int = 1) -> ActionResult:
        return await self._mutate(
            lambda: self.api.post("/cart", {"productId": product.id, "quantity": quantity}),
            login_message=MSG_LOGIN_TO_ADD,
            fallback="Failed to add item",
        )

    async def remove_from_cart(self, product_id: str) -> ActionResult:
        return await self._mutate(
            lambda: self.api.delete(f"/cart/{path_segment(product_id)}"),
            login_message=MSG_LOGIN_TO_MODIFY,
            fallback="Failed to remove item",
        )

    async def update_quantity(self, product_id: str, quantity: int) -> ActionResult:
        """Set a line's quantity; zero or less removes the line."""
        if self.session.is_authenticated and quantity <= 0:
            return await self.remove_from_cart(product_id)
        return await self._mutate(
            lambda: self.api.put(f"/cart/{path_segment(product_id)}", {"quantity": quantity}),
            login_message=MSG_LOGIN_TO_MODIFY,
            fallback="Failed to update quantity",
        )

    async def clear_cart(self) -> ActionResult:
        return await self._mutate(
            lambda: self.api.delete("/cart"),
            login_message=MSG_LOGIN_TO_CLEAR,
            fallback="Failed to clear cart",
            clear=True,
        )

    def discard_local_items(self) -> None:
        """Empty the local list after the server consumed the cart into an order."""
        self._replace([], error=None)

    # ----- lookups -----

    def get_quantity(self, product_id: str) -> int:
        for item in self.items:
            if item.product.id == product_id:
                return item.quantity
        return 0

    def contains(self, product_id: str) -> bool:
        return self.get_quantity(product_id) > 0

    # ----- derived values -----

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total(self) -> float:
        return calc_total(self.items)

    @property
    def item_count(self) -> int:
        return calc_item_count(self.items)

    @property
    def savings(self) -> float:
        return calc_savings(self.items)

    @property
    def shipping(self) -> float:
        if not self.items:
            return 0
        return calc_shipping(
            self.total,
            free_threshold=self.shipping_policy.free_threshold,
            standard_cost=self.shipping_policy.standard_cost,
        )

    @property
    def final_total(self) -> float:
        return self.total + self.shipping

    @property
    def amount_to_free_shipping(self) -> float:
        return calc_amount_to_free_shipping(
            self.total, free_threshold=self.shipping_policy.free_threshold
        )
