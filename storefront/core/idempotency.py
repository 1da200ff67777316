"""Stable request fingerprints for deduplicating payment order creation."""
from __future__ import annotations

import hashlib
import json
from typing import Any


def build_request_hash(payload: Any) -> str:
    """Generate a stable hash for a request payload."""
    serialized = json.dumps(
        payload,
        ensure_ascii=False,
        separators=(",", ":"),
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
