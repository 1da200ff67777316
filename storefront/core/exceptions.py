"""Custom exceptions for the storefront client."""
from __future__ import annotations

from typing import Any


class StorefrontException(Exception):
    """Base exception for all storefront errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationException(StorefrontException):
    """Configuration errors."""

    pass


class StorageException(StorefrontException):
    """Durable session storage errors."""

    pass


class ValidationException(StorefrontException):
    """Local input validation errors (never sent to the server)."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class ApiError(StorefrontException):
    """Non-2xx response or transport failure from the REST backend."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload

    @property
    def server_message(self) -> str | None:
        """The ``message`` field of the response body, if the server sent one."""
        if isinstance(self.payload, dict):
            message = self.payload.get("message")
            if isinstance(message, str) and message:
                return message
        return None


class AuthenticationError(ApiError):
    """401 from any endpoint; the session has already been invalidated."""

    pass


class NotFoundError(ApiError):
    """404 from the backend."""

    pass


class InvalidResponseError(ApiError):
    """Response body does not have the expected shape."""

    pass


class PaymentGatewayError(StorefrontException):
    """Failure or cancellation reported by the hosted payment widget."""

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason


def error_message(error: BaseException, fallback: str) -> str:
    """Pick the user-facing text: server message, then transport message, then fallback."""
    if isinstance(error, ApiError):
        return error.server_message or error.message or fallback
    if isinstance(error, StorefrontException):
        return error.message or fallback
    return str(error) or fallback
