"""Result objects returned by every store action."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ActionResult:
    ok: bool
    error: str | None = None
    data: Any | None = None


def success(data: Any | None = None) -> ActionResult:
    return ActionResult(True, data=data)


def failure(error: str, data: Any | None = None) -> ActionResult:
    return ActionResult(False, error=error, data=data)
