"""Async client core for the Akash Crackers storefront."""
from __future__ import annotations

__version__ = "0.1.0"
