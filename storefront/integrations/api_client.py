"""
Thin aiohttp wrapper around the storefront REST backend.

Every request carries the session's bearer token when one is present.
A 401 from any endpoint invalidates the session before the error is raised,
so no store needs its own logout-on-401 branch.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from storefront.core.exceptions import (
    ApiError,
    AuthenticationError,
    InvalidResponseError,
    NotFoundError,
)

logger = logging.getLogger("storefront.api")


class TokenSource(Protocol):
    """What the client needs from the session handle."""

    @property
    def token(self) -> str | None: ...

    def invalidate(self, reason: str = ...) -> None: ...


def path_segment(value: str) -> str:
    """Escape an id for use as a single URL path segment."""
    return quote(str(value), safe="")


class ApiClient:
    """
    Async REST client.

    Example:
    ```python
    client = ApiClient("http://localhost:5001/api", session)
    cart = await client.get("/cart")
    await client.close()
    ```
    """

    def __init__(
        self,
        base_url: str,
        session: TokenSource,
        *,
        timeout: float = 30,
        http: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._auth = session
        self._timeout = timeout
        self._http = http
        self._owns_http = http is None

    async def _get_http(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
            self._owns_http = True
        return self._http

    async def close(self) -> None:
        if self._owns_http and self._http is not None and not self._http.closed:
            await self._http.close()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        token = self._auth.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        http = await self._get_http()
        logger.debug("%s %s", method, url)

        try:
            async with http.request(
                method,
                url,
                json=json_body,
                params=params,
                headers=self._headers(),
            ) as response:
                payload = await self._read_body(response)
                status = response.status
        except asyncio.TimeoutError as exc:
            raise ApiError(f"timeout of {self._timeout:g}s exceeded") from exc
        except aiohttp.ClientError as exc:
            raise ApiError(str(exc) or "Network Error") from exc

        if status < 400:
            return payload

        message = _payload_message(payload) or f"Request failed with status code {status}"
        if status == 401:
            logger.error("Unauthorized request - 401. Clearing token/session.")
            self._auth.invalidate("401 from " + path)
            raise AuthenticationError(message, status=status, payload=payload)
        if status == 404:
            raise NotFoundError(message, status=status, payload=payload)
        logger.warning("%s %s failed with %s: %s", method, path, status, payload)
        raise ApiError(message, status=status, payload=payload)

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        raw = await response.text()
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            if response.status < 400:
                raise InvalidResponseError(
                    "Invalid JSON received from server", status=response.status, payload=raw
                )
            return raw

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_body: Any | None = None) -> Any:
        return await self.request("POST", path, json_body=json_body)

    async def put(self, path: str, json_body: Any | None = None) -> Any:
        return await self.request("PUT", path, json_body=json_body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)


def _payload_message(payload: Any) -> str | None:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def expect_list(payload: Any) -> list:
    """Endpoints that return collections must return a JSON array."""
    if not isinstance(payload, list):
        raise InvalidResponseError("Invalid response data", payload=payload)
    return payload


def expect_dict(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise InvalidResponseError("Invalid response data", payload=payload)
    return payload
