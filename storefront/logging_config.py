"""Logging setup for the storefront client."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("storefront")


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Configure the root handler once and return the package logger."""
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)

    # aiohttp access noise is not useful for a client
    logging.getLogger("aiohttp").setLevel(max(level, logging.WARNING))
    return logger


__all__ = ["LOG_FORMAT", "logger", "setup_logging"]
