"""Durable key/value storage for the client session (token + profile)."""
from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import redis

from storefront.core.constants import REDIS_KEY_PREFIX
from storefront.core.exceptions import StorageException
from storefront.logging_config import logger

if TYPE_CHECKING:
    from storefront.core.config import Settings


class SessionStorage(Protocol):
    """Minimal string key/value store, read synchronously at startup."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemorySessionStorage:
    """Process-local storage; nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileSessionStorage:
    """JSON document on disk, rewritten atomically on every change."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageException(f"Cannot read session file {self._path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Session file %s is corrupted, starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".session-")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            raise StorageException(f"Cannot write session file {self._path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            data.pop(key)
            if data:
                self._write(data)
            else:
                self._path.unlink(missing_ok=True)


class RedisSessionStorage:
    """Session keys stored in Redis; falls back to memory if Redis is unreachable."""

    def __init__(self, redis_url: str, prefix: str = REDIS_KEY_PREFIX):
        self._redis_url = redis_url
        self._prefix = prefix
        self._memory = MemorySessionStorage()
        self._client = self._init_client()

    def _init_client(self):
        try:
            client = redis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client.ping()
            logger.info("Redis session storage enabled")
            return client
        except Exception as exc:
            logger.warning("Redis session storage init failed, fallback to in-memory: %s", exc)
            return None

    def _switch_to_memory_fallback(self, reason: Exception) -> None:
        logger.warning("Redis session storage fallback to memory mode: %s", reason)
        self._client = None

    @property
    def using_redis(self) -> bool:
        return self._client is not None

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        if self._client is None:
            return self._memory.get(key)
        try:
            return self._client.get(self._key(key))
        except redis.RedisError as exc:
            self._switch_to_memory_fallback(exc)
            return self._memory.get(key)

    def set(self, key: str, value: str) -> None:
        if self._client is not None:
            try:
                self._client.set(self._key(key), value)
                return
            except redis.RedisError as exc:
                self._switch_to_memory_fallback(exc)
        self._memory.set(key, value)

    def remove(self, key: str) -> None:
        if self._client is not None:
            try:
                self._client.delete(self._key(key))
                return
            except redis.RedisError as exc:
                self._switch_to_memory_fallback(exc)
        self._memory.remove(key)


def create_session_storage(settings: Settings) -> SessionStorage:
    """Pick the storage backend named by the settings."""
    backend = settings.storage_backend
    if backend == "redis":
        if not settings.redis_url:
            logger.warning("REDIS_URL is not set; session uses in-memory storage")
            return MemorySessionStorage()
        return RedisSessionStorage(settings.redis_url)
    if backend == "file":
        return FileSessionStorage(settings.storage_path)
    return MemorySessionStorage()
