"""Wishlist store; same auth gating and replace-with-server-array policy as the cart."""
from __future__ import annotations

import logging
from typing import Any, Awaitable

from pydantic import TypeAdapter, ValidationError

from storefront.core.constants import (
    MSG_INVALID_RESPONSE,
    MSG_LOGIN_TO_WISHLIST_ADD,
    MSG_LOGIN_TO_WISHLIST_MODIFY,
)
from storefront.core.exceptions import InvalidResponseError, StorefrontException, error_message
from storefront.domain.entities.product import Product
from storefront.domain.entities.wishlist import WishlistItem
from storefront.integrations.api_client import ApiClient, expect_list, path_segment
from storefront.services.results import ActionResult, failure, success
from storefront.services.session import Session

logger = logging.getLogger("storefront.wishlist")

_items_adapter: TypeAdapter[list[WishlistItem]] = TypeAdapter(list[WishlistItem])


def parse_wishlist(payload: Any) -> list[WishlistItem]:
    try:
        return _items_adapter.validate_python(expect_list(payload))
    except ValidationError as exc:
        raise InvalidResponseError(MSG_INVALID_RESPONSE, payload=payload) from exc


class WishlistStore:
    def __init__(self, session: Session, api: ApiClient):
        self.session = session
        self.api = api
        self.items: list[WishlistItem] = []
        self.is_loading = False
        self.error: str | None = None
        self._auth_key: tuple[bool, int] | None = None
        self.unsubscribe = session.add_listener(self._on_session_change)

    def _on_session_change(self, session: Session) -> Awaitable[ActionResult] | None:
        if session.is_loading:
            return None
        key = (session.is_authenticated, session.generation)
        if key == self._auth_key:
            return None
        self._auth_key = key
        if not session.is_authenticated:
            self.items = []
            self.error = None
            return None
        return self.fetch_wishlist()

    @property
    def count(self) -> int:
        return len(self.items)

    def is_in_wishlist(self, product_id: str) -> bool:
        return any(item.product.id == product_id for item in self.items)

    async def fetch_wishlist(self) -> ActionResult:
        if not self.session.is_authenticated:
            self.items = []
            return success([])

        generation = self.session.generation
        self.is_loading = True
        self.error = None
        try:
            items = parse_wishlist(await self.api.get("/users/wishlist"))
        except StorefrontException as exc:
            message = error_message(exc, "Failed to load wishlist")
            logger.error("Error fetching wishlist: %s", message)
            self.error = message
            return failure(message)
        finally:
            self.is_loading = False

        if generation == self.session.generation:
            self.items = items
        return success(self.items)

    async def _replace_from(self, request: Awaitable[Any], fallback: str) -> ActionResult:
        generation = self.session.generation
        self.is_loading = True
        self.error = None
        try:
            items = parse_wishlist(await request)
        except StorefrontException as exc:
            message = error_message(exc, fallback)
            logger.error("%s: %s", fallback, message)
            self.error = message
            return failure(message)
        finally:
            self.is_loading = False

        if generation == self.session.generation:
            self.items = items
        return success(self.items)

    async def add_to_wishlist(self, product: Product) -> ActionResult:
        if not self.session.is_authenticated:
            self.error = MSG_LOGIN_TO_WISHLIST_ADD
            return failure(MSG_LOGIN_TO_WISHLIST_ADD)
        if self.is_in_wishlist(product.id):
            return success(self.items)
        return await self._replace_from(
            self.api.post("/users/wishlist", {"productId": product.id}),
            "Failed to add item",
        )

    async def remove_from_wishlist(self, product_id: str) -> ActionResult:
        if not self.session.is_authenticated:
            self.error = MSG_LOGIN_TO_WISHLIST_MODIFY
            return failure(MSG_LOGIN_TO_WISHLIST_MODIFY)
        return await self._replace_from(
            self.api.delete(f"/users/wishlist/{path_segment(product_id)}"),
            "Failed to remove item",
        )

    async def toggle(self, product: Product) -> ActionResult:
        if self.is_in_wishlist(product.id):
            return await self.remove_from_wishlist(product.id)
        return await self.add_to_wishlist(product)

    async def clear_wishlist(self) -> ActionResult:
        if not self.session.is_authenticated:
            self.error = MSG_LOGIN_TO_WISHLIST_MODIFY
            return failure(MSG_LOGIN_TO_WISHLIST_MODIFY)
        self.is_loading = True
        try:
            # The clear endpoint may answer with an empty array or a bare message.
            await self.api.delete("/users/wishlist/clear")
        except StorefrontException as exc:
            message = error_message(exc, "Failed to clear wishlist")
            logger.error("Error clearing wishlist: %s", message)
            self.error = message
            return failure(message)
        finally:
            self.is_loading = False

        self.items = []
        self.error = None
        return success([])
