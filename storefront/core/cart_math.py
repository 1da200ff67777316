"""Shared helpers for cart totals and shipping.

Pure folds over the current cart lines; nothing here is persisted.
"""
from __future__ import annotations

from typing import Iterable

from storefront.core.constants import FREE_SHIPPING_THRESHOLD, STANDARD_SHIPPING_COST
from storefront.domain.entities.cart import CartItem


def calc_total(items: Iterable[CartItem]) -> float:
    return sum((item.product.price * item.quantity for item in items), 0)


def calc_item_count(items: Iterable[CartItem]) -> int:
    return sum((item.quantity for item in items), 0)


def calc_savings(items: Iterable[CartItem]) -> float:
    """MRP minus selling price over all lines; products without an MRP save nothing."""
    savings = 0
    for item in items:
        mrp = item.product.mrp or item.product.price
        savings += (mrp - item.product.price) * item.quantity
    return max(savings, 0)


def calc_shipping(
    subtotal: float,
    *,
    free_threshold: float = FREE_SHIPPING_THRESHOLD,
    standard_cost: float = STANDARD_SHIPPING_COST,
) -> float:
    """Standard rate, waived once the subtotal is strictly above the threshold."""
    if subtotal > free_threshold:
        return 0
    return standard_cost


def calc_amount_to_free_shipping(
    subtotal: float, *, free_threshold: float = FREE_SHIPPING_THRESHOLD
) -> float:
    return max(free_threshold - subtotal, 0)


def order_items_payload(items: Iterable[CartItem]) -> list[dict]:
    """Line items in the shape the order and payment endpoints expect."""
    return [{"productId": item.product.id, "quantity": item.quantity} for item in items]
