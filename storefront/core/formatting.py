"""Price and rating formatting for INR storefront copy."""
from __future__ import annotations

CURRENCY_SYMBOL = "₹"


def group_indian(value: int) -> str:
    """Digit grouping used in India: 12,34,567."""
    sign = "-" if value < 0 else ""
    digits = str(abs(int(value)))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def format_price(price: float) -> str:
    """Whole-rupee price, e.g. ``₹1,23,456``."""
    return f"{CURRENCY_SYMBOL}{group_indian(round(price))}"


def calculate_discount(mrp: float, price: float) -> int:
    """Percent off the MRP, rounded; 0 when no MRP is known."""
    if not mrp or mrp <= 0:
        return 0
    return round((mrp - price) / mrp * 100)


def format_rating(rating: float) -> str:
    return f"{rating:.1f}"
