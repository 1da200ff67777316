from __future__ import annotations

import pytest

from storefront.domain.order import OrderStatus
from storefront.domain.order_fsm import can_transition, progress_index, validate_order_transition


def _validate(current_status, target_status):
    return validate_order_transition(current_status=current_status, target_status=target_status)


def test_happy_path_transitions_allowed() -> None:
    assert _validate("pending", "confirmed").allowed
    assert _validate("confirmed", "processing").allowed
    assert _validate("processing", "shipped").allowed
    assert _validate("shipped", "delivered").allowed


def test_forward_jump_is_allowed() -> None:
    assert _validate("pending", "shipped").allowed


def test_backward_move_is_blocked() -> None:
    result = _validate("shipped", "processing")
    assert not result.allowed
    assert result.reason == "Transition 'shipped -> processing' is not allowed."


@pytest.mark.parametrize("current", ["delivered", "cancelled"])
def test_terminal_status_transition_is_blocked(current) -> None:
    result = _validate(current, "pending")
    assert not result.allowed
    assert "terminal" in result.reason


def test_cancel_allowed_until_delivered() -> None:
    for status in ("pending", "confirmed", "processing", "shipped"):
        assert can_transition(status, OrderStatus.CANCELLED)
    assert not can_transition("delivered", "cancelled")


def test_same_status_is_a_no_op() -> None:
    assert _validate("processing", "processing").allowed


def test_status_is_normalized() -> None:
    assert _validate(" Pending ", "CONFIRMED").allowed


def test_unknown_and_missing_status() -> None:
    assert not _validate("pending", "lost").allowed
    assert not _validate("pending", None).allowed
    assert not _validate("weird", "shipped").allowed
    assert _validate(None, "shipped").allowed


def test_progress_index() -> None:
    assert progress_index("pending") == 0
    assert progress_index(OrderStatus.DELIVERED) == 4
    assert progress_index("cancelled") == -1
