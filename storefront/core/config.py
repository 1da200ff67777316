"""Environment-driven configuration objects for the storefront client."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from storefront.core.constants import (
    DEFAULT_API_URL,
    DEFAULT_BRAND_NAME,
    FREE_SHIPPING_THRESHOLD,
    STANDARD_SHIPPING_COST,
)
from storefront.core.exceptions import ConfigurationException

STORAGE_BACKENDS = frozenset({"memory", "file", "redis"})


def _str_to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes", "y"}


def _number(name: str, default: str, cast=int):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationException(f"{name} must be a number, got {raw!r}") from exc


@dataclass(slots=True)
class ShippingPolicy:
    free_threshold: float = FREE_SHIPPING_THRESHOLD
    standard_cost: float = STANDARD_SHIPPING_COST


@dataclass(slots=True)
class PaymentConfig:
    key_id: str
    brand_name: str = DEFAULT_BRAND_NAME
    theme_color: str = "#E53E3E"

    @property
    def enabled(self) -> bool:
        return bool(self.key_id)


@dataclass(slots=True)
class Settings:
    api_url: str
    api_timeout: float
    storage_backend: str
    storage_path: Path
    redis_url: str | None
    payment: PaymentConfig
    shipping: ShippingPolicy = field(default_factory=ShippingPolicy)
    log_level: str = "INFO"
    environment: str = "production"
    sentry_dsn: str | None = None
    debug: bool = False


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv(env_file or find_dotenv(usecwd=True))

    api_url = os.getenv("STOREFRONT_API_URL", DEFAULT_API_URL).rstrip("/")
    if not api_url:
        raise ConfigurationException("STOREFRONT_API_URL must not be empty")

    storage_backend = os.getenv("STOREFRONT_STORAGE", "file").strip().lower()
    if storage_backend not in STORAGE_BACKENDS:
        raise ConfigurationException(
            f"STOREFRONT_STORAGE must be one of {sorted(STORAGE_BACKENDS)}, got {storage_backend!r}"
        )

    storage_path = Path(
        os.getenv("STOREFRONT_STORAGE_PATH", "~/.storefront/session.json")
    ).expanduser()

    payment = PaymentConfig(
        key_id=os.getenv("RAZORPAY_KEY_ID", "").strip(),
        brand_name=os.getenv("STOREFRONT_BRAND_NAME", DEFAULT_BRAND_NAME),
    )

    shipping = ShippingPolicy(
        free_threshold=_number("FREE_SHIPPING_THRESHOLD", str(FREE_SHIPPING_THRESHOLD), float),
        standard_cost=_number("STANDARD_SHIPPING_COST", str(STANDARD_SHIPPING_COST), float),
    )

    return Settings(
        api_url=api_url,
        api_timeout=_number("STOREFRONT_API_TIMEOUT", "30", float),
        storage_backend=storage_backend,
        storage_path=storage_path,
        redis_url=os.getenv("REDIS_URL") or None,
        payment=payment,
        shipping=shipping,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        environment=os.getenv("STOREFRONT_ENV", "production"),
        sentry_dsn=os.getenv("SENTRY_DSN") or None,
        debug=_str_to_bool(os.getenv("STOREFRONT_DEBUG")),
    )
