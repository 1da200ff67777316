"""
Session handle shared by every store.

Lifecycle: ``init`` (``restore()`` reads durable storage) -> ``active``
(after login/signup) -> ``cleared`` (logout, failed login, or a 401 from
any endpoint). Stores receive the handle through their constructor and
subscribe with ``add_listener``.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from storefront.core.constants import PROFILE_STORAGE_KEY, TOKEN_STORAGE_KEY
from storefront.core.exceptions import StorageException
from storefront.core.session_storage import SessionStorage
from storefront.domain.entities.user import User

logger = logging.getLogger("storefront.session")

SessionListener = Callable[["Session"], "Awaitable[Any] | None"]


class SessionPhase(Enum):
    INIT = "init"
    ACTIVE = "active"
    CLEARED = "cleared"


class Session:
    """Current user + bearer token, mirrored in durable storage."""

    def __init__(self, storage: SessionStorage):
        self._storage = storage
        self.user: User | None = None
        self.token: str | None = None
        self.is_loading = True
        self.phase = SessionPhase.INIT
        # Bumped on every activate/clear; lets stores drop responses for a dead session.
        self.generation = 0
        self._listeners: list[SessionListener] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def is_authenticated(self) -> bool:
        return self.phase is SessionPhase.ACTIVE and bool(self.token) and self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.user is not None and self.user.is_admin

    def restore(self) -> bool:
        """Resume a persisted session; anything unreadable is wiped."""
        token: str | None = None
        profile: str | None = None
        user: User | None = None
        try:
            token = self._storage.get(TOKEN_STORAGE_KEY)
            profile = self._storage.get(PROFILE_STORAGE_KEY)
            if profile:
                user = User.model_validate_json(profile)
        except (ValidationError, ValueError, StorageException) as exc:
            logger.error("Error reading auth data from storage: %s", exc)
            self._forget()
            token, profile, user = None, None, None

        if token and user:
            self._set_active(user, token)
            logger.info("Session restored for %s", user.email or user.id)
            return True

        if token or profile:
            # Token and profile only make sense as a pair.
            self._forget()
        self.is_loading = False
        self.phase = SessionPhase.CLEARED
        self._notify()
        return False

    def activate(self, user: User, token: str) -> None:
        """Persist token + profile and mark the session authenticated.

        Raises ``StorageException`` if either key cannot be written; both keys
        are then removed and the in-memory session is not changed.
        """
        try:
            self._storage.set(TOKEN_STORAGE_KEY, token)
            self._storage.set(PROFILE_STORAGE_KEY, user.model_dump_json(by_alias=True))
        except StorageException:
            self._forget()
            raise
        self._set_active(user, token)

    def update_user(self, user: User) -> None:
        """Replace the stored profile; the token and phase are untouched."""
        self._storage.set(PROFILE_STORAGE_KEY, user.model_dump_json(by_alias=True))
        self.user = user
        self._notify()

    def clear(self) -> None:
        """Remove both storage keys and return to anonymous."""
        self._forget()
        self.user = None
        self.token = None
        self.is_loading = False
        self.phase = SessionPhase.CLEARED
        self.generation += 1
        self._notify()

    def invalidate(self, reason: str = "") -> None:
        """Forced logout after the backend rejected the token."""
        if self.phase is SessionPhase.ACTIVE:
            logger.warning("Session invalidated%s", f": {reason}" if reason else "")
        self.clear()

    def _set_active(self, user: User, token: str) -> None:
        self.user = user
        self.token = token
        self.is_loading = False
        self.phase = SessionPhase.ACTIVE
        self.generation += 1
        self._notify()

    def _forget(self) -> None:
        # In-memory state is cleared by the callers even if the backend is unusable.
        try:
            self._storage.remove(TOKEN_STORAGE_KEY)
            self._storage.remove(PROFILE_STORAGE_KEY)
        except StorageException as exc:
            logger.error("Error clearing auth data from storage: %s", exc)

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener(session)`` after every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            result = listener(self)
            if inspect.isawaitable(result):
                self._schedule(result)

    def _schedule(self, awaitable: Awaitable[Any]) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop (sync caller): the listener's follow-up fetch is skipped.
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.debug("No running event loop; skipped async session listener")
            return
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for listener work triggered by earlier changes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
