"""Order status transition rules (single source of truth)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from storefront.domain.order import OrderStatus

# Forward-only progression; cancellation is the one side exit.
STATUS_SEQUENCE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def _build_transitions() -> dict[OrderStatus, frozenset[OrderStatus]]:
    transitions: dict[OrderStatus, frozenset[OrderStatus]] = {}
    for index, status in enumerate(STATUS_SEQUENCE):
        if status in TERMINAL_STATUSES:
            transitions[status] = frozenset()
            continue
        later = set(STATUS_SEQUENCE[index + 1 :])
        later.add(OrderStatus.CANCELLED)
        transitions[status] = frozenset(later)
    transitions[OrderStatus.CANCELLED] = frozenset()
    return transitions


ALLOWED_TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = _build_transitions()


@dataclass(frozen=True, slots=True)
class TransitionValidationResult:
    allowed: bool
    reason: str | None = None


def validate_order_transition(
    *,
    current_status: str | OrderStatus | None,
    target_status: str | OrderStatus | None,
) -> TransitionValidationResult:
    """Check a status change against the monotonic order lifecycle."""
    if not target_status:
        return TransitionValidationResult(False, "New status is required.")

    try:
        target = OrderStatus.normalize(target_status)
    except ValueError:
        return TransitionValidationResult(False, f"Unsupported status: {target_status}")

    if current_status is None:
        return TransitionValidationResult(True)

    try:
        current = OrderStatus.normalize(current_status)
    except ValueError:
        return TransitionValidationResult(False, f"Unsupported current status: {current_status}")

    if current == target:
        return TransitionValidationResult(True)

    if current in TERMINAL_STATUSES:
        return TransitionValidationResult(
            False,
            f"Cannot change the terminal status '{current.value}'.",
        )

    if target not in ALLOWED_TRANSITIONS[current]:
        return TransitionValidationResult(
            False,
            f"Transition '{current.value} -> {target.value}' is not allowed.",
        )

    return TransitionValidationResult(True)


def can_transition(current: str | OrderStatus, target: str | OrderStatus) -> bool:
    return validate_order_transition(current_status=current, target_status=target).allowed


def progress_index(status: str | OrderStatus) -> int:
    """Position on the tracking timeline; -1 for cancelled orders."""
    status = OrderStatus.normalize(status)
    if status == OrderStatus.CANCELLED:
        return -1
    return STATUS_SEQUENCE.index(status)
