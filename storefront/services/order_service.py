"""Order history, order tracking and admin order management."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from storefront.core.constants import (
    ADMIN_ORDERS_PER_PAGE,
    MSG_INVALID_RESPONSE,
    MSG_NOT_LOGGED_IN,
    MSG_ORDER_NOT_FOUND,
)
from storefront.core.exceptions import (
    InvalidResponseError,
    NotFoundError,
    StorefrontException,
    error_message,
)
from storefront.domain.order import Order, OrderStatus
from storefront.domain.order_fsm import validate_order_transition
from storefront.integrations.api_client import ApiClient, expect_list, path_segment
from storefront.services.results import ActionResult, failure, success
from storefront.services.session import Session

logger = logging.getLogger("storefront.orders")

MSG_ADMIN_ONLY = "Admin access required."


def parse_order(payload: Any) -> Order:
    if not isinstance(payload, dict):
        raise InvalidResponseError("Order data not found in response.", payload=payload)
    try:
        return Order.model_validate(payload)
    except ValidationError as exc:
        raise InvalidResponseError(MSG_INVALID_RESPONSE, payload=payload) from exc


def parse_orders(payload: Any) -> list[Order]:
    return [parse_order(item) for item in expect_list(payload)]


@dataclass(slots=True)
class OrderPage:
    orders: list[Order] = field(default_factory=list)
    total_pages: int = 1
    total_orders: int = 0
    current_page: int = 1


def parse_order_page(payload: Any, *, page: int, limit: int) -> OrderPage:
    """Paginated ``{orders, totalPages, totalOrders, currentPage}`` or a flat array."""
    if isinstance(payload, dict) and isinstance(payload.get("orders"), list):
        return OrderPage(
            orders=parse_orders(payload["orders"]),
            total_pages=int(payload.get("totalPages") or 1),
            total_orders=int(payload.get("totalOrders") or 0),
            current_page=int(payload.get("currentPage") or page),
        )
    orders = parse_orders(payload)
    logger.warning("Order listing is not paginated by the backend; loaded all %s", len(orders))
    return OrderPage(
        orders=orders,
        total_pages=max(math.ceil(len(orders) / limit), 1),
        total_orders=len(orders),
        current_page=page,
    )


class OrderStore:
    def __init__(self, session: Session, api: ApiClient):
        self.session = session
        self.api = api
        self.my_orders: list[Order] = []
        self.current_order: Order | None = None
        self.admin_page = OrderPage()
        self.is_loading = False
        self.error: str | None = None

    def _fail(self, message: str) -> ActionResult:
        self.error = message
        return failure(message)

    async def fetch_my_orders(self) -> ActionResult:
        if not self.session.is_authenticated:
            self.my_orders = []
            return self._fail(MSG_NOT_LOGGED_IN)

        self.is_loading = True
        self.error = None
        try:
            orders = parse_orders(await self.api.get("/orders/myorders"))
        except StorefrontException as exc:
            logger.error("Error fetching orders: %s", exc.message)
            return self._fail(error_message(exc, "Failed to load orders."))
        finally:
            self.is_loading = False

        self.my_orders = orders
        return success(orders)

    async def fetch_order(self, order_id: str) -> ActionResult:
        """Load one order for the tracking view."""
        if not order_id:
            return self._fail(MSG_ORDER_NOT_FOUND)

        self.is_loading = True
        self.error = None
        try:
            order = parse_order(await self.api.get(f"/orders/{path_segment(order_id)}"))
        except NotFoundError:
            self.current_order = None
            return self._fail(MSG_ORDER_NOT_FOUND)
        except StorefrontException as exc:
            logger.error("Error fetching order %s: %s", order_id, exc.message)
            self.current_order = None
            return self._fail(error_message(exc, "Failed to load order details."))
        finally:
            self.is_loading = False

        self.current_order = order
        return success(order)

    async def fetch_all_orders(self, page: int = 1, limit: int = ADMIN_ORDERS_PER_PAGE) -> ActionResult:
        if not self.session.is_admin:
            return self._fail(MSG_ADMIN_ONLY)

        self.is_loading = True
        self.error = None
        logger.debug("Fetching all orders (admin) page: %s", page)
        try:
            payload = await self.api.get("/orders", params={"page": page, "limit": limit})
            order_page = parse_order_page(payload, page=page, limit=limit)
        except StorefrontException as exc:
            logger.error("Error fetching admin orders: %s", exc.message)
            return self._fail(error_message(exc, "Failed to load orders."))
        finally:
            self.is_loading = False

        self.admin_page = order_page
        return success(order_page)

    def _known_order(self, order_id: str) -> Order | None:
        candidates = [*self.admin_page.orders, *self.my_orders]
        if self.current_order is not None:
            candidates.append(self.current_order)
        return next((order for order in candidates if order.id == order_id), None)

    async def update_status(
        self,
        order_id: str,
        status: str | OrderStatus,
        tracking_number: str | None = None,
    ) -> ActionResult:
        """Admin status change, checked against the lifecycle before it is sent."""
        if not self.session.is_admin:
            return self._fail(MSG_ADMIN_ONLY)

        order = self._known_order(order_id)
        if order is None:
            loaded = await self.fetch_order(order_id)
            if not loaded.ok:
                return loaded
            order = loaded.data

        check = validate_order_transition(current_status=order.status, target_status=status)
        if not check.allowed:
            logger.warning("Rejected status change for %s: %s", order_id, check.reason)
            return self._fail(check.reason or "Status change not allowed.")

        body: dict[str, Any] = {"status": OrderStatus.normalize(status).value}
        if tracking_number:
            body["trackingNumber"] = tracking_number

        self.error = None
        logger.info("Updating order %s status to %s", order_id, body["status"])
        try:
            await self.api.put(f"/orders/{path_segment(order_id)}/status", body)
        except StorefrontException as exc:
            logger.error("Error updating order status: %s", exc.message)
            message = error_message(exc, "Failed to update order status")
            await self.fetch_all_orders(self.admin_page.current_page)
            return self._fail(message)

        await self.fetch_all_orders(self.admin_page.current_page)
        return success(body["status"])
