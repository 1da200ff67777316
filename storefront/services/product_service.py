"""Product catalog store plus pure search/filter/sort helpers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from storefront.core.constants import MSG_INVALID_RESPONSE
from storefront.core.exceptions import InvalidResponseError, StorefrontException, error_message
from storefront.domain.entities.product import Product
from storefront.domain.value_objects import SortOrder
from storefront.integrations.api_client import ApiClient, path_segment
from storefront.services.results import ActionResult, failure, success

logger = logging.getLogger("storefront.products")


@dataclass(slots=True)
class ProductFilters:
    category_id: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    sound_level: str | None = None
    min_rating: float | None = None
    in_stock_only: bool = False


def search_products(products: Iterable[Product], query: str) -> list[Product]:
    """Case-insensitive match on name, description or any tag."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(products)
    return [
        product
        for product in products
        if needle in product.name.lower()
        or needle in product.description.lower()
        or any(needle in tag.lower() for tag in product.tags)
    ]


def filter_products(products: Iterable[Product], filters: ProductFilters) -> list[Product]:
    filtered = list(products)
    if filters.category_id:
        filtered = [p for p in filtered if p.category_id == filters.category_id]
    if filters.min_price is not None:
        filtered = [p for p in filtered if p.price >= filters.min_price]
    if filters.max_price is not None:
        filtered = [p for p in filtered if p.price <= filters.max_price]
    if filters.sound_level:
        filtered = [p for p in filtered if p.sound_level == filters.sound_level]
    if filters.min_rating is not None:
        filtered = [p for p in filtered if p.rating >= filters.min_rating]
    if filters.in_stock_only:
        filtered = [p for p in filtered if p.in_stock]
    return filtered


def sort_products(products: Iterable[Product], order: SortOrder | str = SortOrder.NAME) -> list[Product]:
    order = SortOrder(order)
    items = list(products)
    if order is SortOrder.PRICE_LOW_HIGH:
        return sorted(items, key=lambda p: p.price)
    if order is SortOrder.PRICE_HIGH_LOW:
        return sorted(items, key=lambda p: p.price, reverse=True)
    if order is SortOrder.RATING:
        return sorted(items, key=lambda p: p.rating, reverse=True)
    if order is SortOrder.NEWEST:
        dated = sorted((p for p in items if p.created_at), key=lambda p: p.created_at, reverse=True)
        return dated + [p for p in items if not p.created_at]
    return sorted(items, key=lambda p: p.name.lower())


def _parse_product(payload: Any) -> Product:
    try:
        return Product.model_validate(payload)
    except ValidationError as exc:
        raise InvalidResponseError(MSG_INVALID_RESPONSE, payload=payload) from exc


def parse_products(payload: Any) -> list[Product]:
    """Accept a bare array or the paginated ``{"products": [...]}`` envelope."""
    if isinstance(payload, dict) and isinstance(payload.get("products"), list):
        payload = payload["products"]
    if not isinstance(payload, list):
        raise InvalidResponseError("Invalid product data format received", payload=payload)
    return [_parse_product(item) for item in payload]


class ProductStore:
    def __init__(self, api: ApiClient):
        self.api = api
        self.products: list[Product] = []
        self.is_loading = False
        self.error: str | None = None

    async def fetch_products(self) -> ActionResult:
        self.is_loading = True
        self.error = None
        logger.debug("Fetching products from API...")
        try:
            products = parse_products(await self.api.get("/products"))
        except StorefrontException as exc:
            message = error_message(exc, "Failed to load products")
            logger.error("Error fetching products: %s", message)
            self.error = message
            self.products = []
            return failure(message)
        finally:
            self.is_loading = False

        self.products = products
        logger.debug("Fetched products: %s", len(products))
        return success(products)

    def get_product_by_id(self, product_id: str) -> Product | None:
        return next((p for p in self.products if p.id == product_id), None)

    def get_products_by_category(self, category_id: str, limit: int | None = None) -> list[Product]:
        matches = [p for p in self.products if p.category_id and p.category_id == category_id]
        return matches[:limit] if limit else matches

    def search(self, query: str) -> list[Product]:
        return search_products(self.products, query)

    def best_sellers(self) -> list[Product]:
        return [p for p in self.products if p.is_best_seller]

    def new_arrivals(self) -> list[Product]:
        return [p for p in self.products if p.is_new_arrival]

    def on_sale(self) -> list[Product]:
        return [p for p in self.products if p.is_on_sale]

    # ----- admin -----

    async def add_product(self, fields: Mapping[str, Any]) -> ActionResult:
        self.error = None
        try:
            product = _parse_product(await self.api.post("/products", dict(fields)))
        except StorefrontException as exc:
            self.error = error_message(exc, "Failed to add product")
            logger.error("Error adding product: %s", self.error)
            return failure(self.error)
        self.products = [product, *self.products]
        return success(product)

    async def update_product(self, product_id: str, fields: Mapping[str, Any]) -> ActionResult:
        self.error = None
        try:
            product = _parse_product(
                await self.api.put(f"/products/{path_segment(product_id)}", dict(fields))
            )
        except StorefrontException as exc:
            self.error = error_message(exc, "Failed to update product")
            logger.error("Error updating product: %s", self.error)
            return failure(self.error)
        self.products = [product if p.id == product_id else p for p in self.products]
        return success(product)

    async def delete_product(self, product_id: str) -> ActionResult:
        self.error = None
        try:
            await self.api.delete(f"/products/{path_segment(product_id)}")
        except StorefrontException as exc:
            self.error = error_message(exc, "Failed to delete product")
            logger.error("Error deleting product: %s", self.error)
            return failure(self.error)
        self.products = [p for p in self.products if p.id != product_id]
        return success(product_id)
