"""Sentry integration for client-side error tracking."""
from __future__ import annotations

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from storefront import __version__

logger = logging.getLogger("storefront.sentry")

_initialized = False


def init_sentry(
    dsn: str | None,
    environment: str = "production",
    enable_logging: bool = True,
    sample_rate: float = 1.0,
) -> bool:
    """Initialize Sentry error tracking.

    Args:
        dsn: Sentry DSN; tracking stays off when empty
        environment: Environment name (production, staging, development)
        enable_logging: Turn ERROR log records into Sentry events
        sample_rate: Error sampling rate (1.0 = 100%)

    Returns:
        True if Sentry was initialized
    """
    global _initialized

    if not dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    integrations = []
    if enable_logging:
        integrations.append(LoggingIntegration(level=logging.INFO, event_level=logging.ERROR))

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            integrations=integrations,
            sample_rate=sample_rate,
            send_default_pii=False,
            release=f"storefront@{__version__}",
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    _initialized = True
    logger.info(f"Sentry initialized for {environment} environment")
    return True


def capture_exception(error: BaseException, **extra: Any) -> None:
    """Send an exception to Sentry with additional context."""
    if not _initialized:
        return

    with sentry_sdk.new_scope() as scope:
        for key, value in extra.items():
            scope.set_context(key, value if isinstance(value, dict) else {"value": value})
        sentry_sdk.capture_exception(error)
