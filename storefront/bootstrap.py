"""Composition root wiring storage, session, REST client and stores."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import aiohttp

from .core.config import Settings
from .core.sentry_integration import init_sentry
from .core.session_storage import SessionStorage, create_session_storage
from .integrations.api_client import ApiClient
from .integrations.payment_gateway import ConsolePaymentWidget, HostedPaymentWidget
from .logging_config import logger, setup_logging
from .services import (
    AddressStore,
    AuthStore,
    CartStore,
    CategoryStore,
    CheckoutFlow,
    ContentStore,
    OrderStore,
    ProductStore,
    Session,
    WishlistStore,
)


def init_observability(settings: Settings) -> bool:
    """Configure logging and, when a DSN is set, Sentry. Returns True if Sentry is on."""
    setup_logging(settings.log_level)
    return init_sentry(settings.sentry_dsn, environment=settings.environment)


@dataclass
class Storefront:
    settings: Settings
    storage: SessionStorage
    session: Session
    api: ApiClient
    widget: HostedPaymentWidget
    auth: AuthStore
    cart: CartStore
    categories: CategoryStore
    wishlist: WishlistStore
    content: ContentStore
    orders: OrderStore
    products: ProductStore
    addresses: AddressStore
    _started: bool = field(default=False, repr=False)

    def checkout(self, navigate: Callable[[str], Any] | None = None) -> CheckoutFlow:
        """Start a fresh checkout over the current cart."""
        return CheckoutFlow(
            self.session,
            self.cart,
            self.api,
            self.widget,
            payment=self.settings.payment,
            shipping=self.settings.shipping,
            navigate=navigate,
        )

    async def start(self) -> None:
        """Resume the persisted session and wait for the stores to sync with it."""
        if self._started:
            return
        self._started = True
        self.session.restore()
        await self.session.drain()

    async def close(self) -> None:
        await self.session.drain()
        await self.api.close()

    async def __aenter__(self) -> Storefront:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def build_storefront(
    settings: Settings,
    *,
    storage: SessionStorage | None = None,
    widget: HostedPaymentWidget | None = None,
    http: aiohttp.ClientSession | None = None,
) -> Storefront:
    """Create the runtime components from configuration.

    Stores subscribe to the session before it is restored, so the initial
    restore already triggers their first fetch.
    """
    storage = storage or create_session_storage(settings)
    session = Session(storage)
    api = ApiClient(settings.api_url, session, timeout=settings.api_timeout, http=http)
    logger.info("Storefront client for %s (%s storage)", settings.api_url, settings.storage_backend)

    return Storefront(
        settings=settings,
        storage=storage,
        session=session,
        api=api,
        widget=widget or ConsolePaymentWidget(),
        auth=AuthStore(session, api),
        cart=CartStore(session, api, shipping=settings.shipping),
        categories=CategoryStore(api),
        wishlist=WishlistStore(session, api),
        content=ContentStore(api),
        orders=OrderStore(session, api),
        products=ProductStore(api),
        addresses=AddressStore(session, api),
    )
