"""Category store: public list plus admin create/update/delete."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from storefront.core.constants import MSG_INVALID_RESPONSE
from storefront.core.exceptions import InvalidResponseError, StorefrontException, error_message
from storefront.domain.entities.category import Category
from storefront.integrations.api_client import ApiClient, path_segment
from storefront.services.results import ActionResult, failure, success

logger = logging.getLogger("storefront.categories")


def _parse_category(payload: Any) -> Category:
    try:
        return Category.model_validate(payload)
    except ValidationError as exc:
        raise InvalidResponseError(MSG_INVALID_RESPONSE, payload=payload) from exc


def parse_categories(payload: Any) -> list[Category]:
    if not isinstance(payload, list):
        raise InvalidResponseError("Invalid category data format received", payload=payload)
    return [_parse_category(item) for item in payload]


class CategoryStore:
    def __init__(self, api: ApiClient):
        self.api = api
        self.categories: list[Category] = []
        self.is_loading = False
        self.error: str | None = None

    async def fetch_categories(self) -> ActionResult:
        self.is_loading = True
        self.error = None
        try:
            categories = parse_categories(await self.api.get("/categories"))
        except StorefrontException as exc:
            message = error_message(exc, "Failed to load categories")
            logger.error("Error fetching categories: %s", message)
            self.error = message
            self.categories = []
            return failure(message)
        finally:
            self.is_loading = False

        self.categories = categories
        logger.debug("Fetched categories: %s", len(categories))
        return success(categories)

    def get_category_by_id(self, category_id: str) -> Category | None:
        return next((c for c in self.categories if c.id == category_id), None)

    # ----- admin -----

    async def add_category(self, fields: Mapping[str, Any]) -> ActionResult:
        self.error = None
        try:
            category = _parse_category(await self.api.post("/categories", dict(fields)))
        except StorefrontException as exc:
            self.error = error_message(exc, "Failed to add category")
            logger.error("Error adding category: %s", self.error)
            return failure(self.error)
        self.categories = [category, *self.categories]
        return success(category)

    async def update_category(self, category_id: str, fields: Mapping[str, Any]) -> ActionResult:
        self.error = None
        try:
            category = _parse_category(
                await self.api.put(f"/categories/{path_segment(category_id)}", dict(fields))
            )
        except StorefrontException as exc:
            self.error = error_message(exc, "Failed to update category")
            logger.error("Error updating category: %s", self.error)
            return failure(self.error)
        self.categories = [category if c.id == category_id else c for c in self.categories]
        return success(category)

    async def delete_category(self, category_id: str) -> ActionResult:
        self.error = None
        try:
            await self.api.delete(f"/categories/{path_segment(category_id)}")
        except StorefrontException as exc:
            self.error = error_message(exc, "Failed to delete category")
            logger.error("Error deleting category: %s", self.error)
            return failure(self.error)
        self.categories = [c for c in self.categories if c.id != category_id]
        return success(category_id)
