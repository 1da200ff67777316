"""Auth store: login, signup, logout and profile updates over the session handle."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from storefront.core.constants import MSG_GENERIC_ERROR, MSG_NOT_LOGGED_IN, MSG_SESSION_NOT_SAVED
from storefront.core.exceptions import (
    InvalidResponseError,
    StorageException,
    StorefrontException,
    error_message,
)
from storefront.core.validation import validate_email, validate_password
from storefront.domain.entities.user import User
from storefront.integrations.api_client import ApiClient, path_segment
from storefront.services.results import ActionResult, failure, success
from storefront.services.session import Session

logger = logging.getLogger("storefront.auth")

# Fields the profile endpoint accepts; id, role and timestamps are server-owned.
PROFILE_FIELDS = ("firstName", "lastName", "email", "phone", "address")


def _parse_auth_response(payload: Any, action: str) -> tuple[User, str]:
    """Split ``{...user fields, token}`` into a user and its bearer token."""
    invalid = InvalidResponseError(f"{action} failed: Invalid response data from server", payload=payload)
    if not isinstance(payload, dict):
        raise invalid
    token = payload.get("token")
    try:
        user = User.model_validate(payload)
    except ValidationError as exc:
        raise invalid from exc
    if not token:
        raise invalid
    return user, str(token)


class AuthStore:
    """Auth actions; state lives on the injected ``Session``."""

    def __init__(self, session: Session, api: ApiClient):
        self.session = session
        self.api = api
        self.is_loading = False
        self.error: str | None = None

    @property
    def user(self) -> User | None:
        return self.session.user

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    def _start(self) -> None:
        self.is_loading = True
        self.error = None

    def _fail(self, message: str, *, clear_session: bool) -> ActionResult:
        if clear_session:
            self.session.clear()
        self.is_loading = False
        self.error = message or MSG_GENERIC_ERROR
        return failure(self.error)

    async def _authenticate(self, path: str, body: dict[str, Any], action: str) -> ActionResult:
        self._start()
        try:
            payload = await self.api.post(path, body)
            user, token = _parse_auth_response(payload, action)
        except StorefrontException as exc:
            message = error_message(exc, f"{action} failed")
            logger.error("%s API error: %s", action, getattr(exc, "payload", None) or exc)
            return self._fail(message, clear_session=True)

        try:
            self.session.activate(user, token)
        except StorageException as exc:
            logger.error("%s could not persist session: %s", action, exc)
            return self._fail(MSG_SESSION_NOT_SAVED, clear_session=True)
        self.is_loading = False
        logger.info("%s succeeded for %s", action, user.email or user.id)
        return success(user)

    async def login(self, email: str, password: str) -> ActionResult:
        return await self._authenticate("/auth/login", {"email": email, "password": password}, "Login")

    async def signup(self, fields: Mapping[str, Any]) -> ActionResult:
        """Register a new account; ``fields`` uses the backend's camelCase keys."""
        return await self._authenticate("/auth/register", dict(fields), "Signup")

    def logout(self) -> None:
        self.session.clear()
        self.is_loading = False
        self.error = None
        logger.info("User logged out")

    async def update_profile(self, fields: Mapping[str, Any]) -> ActionResult:
        """Update the profile; a failure leaves the session untouched."""
        if self.session.user is None:
            return failure(MSG_NOT_LOGGED_IN)

        body = {key: value for key, value in fields.items() if key in PROFILE_FIELDS}
        self._start()
        try:
            payload = await self.api.put("/users/profile", body)
            if not isinstance(payload, dict):
                raise InvalidResponseError("Invalid response data", payload=payload)
            user = User.model_validate(payload)
        except ValidationError:
            return self._fail("Profile update failed", clear_session=False)
        except StorefrontException as exc:
            logger.error("Update Profile API error: %s", getattr(exc, "payload", None) or exc)
            return self._fail(error_message(exc, "Profile update failed"), clear_session=False)

        # A 401 during the request would already have cleared the session.
        if self.session.is_authenticated:
            try:
                self.session.update_user(user)
            except StorageException as exc:
                logger.error("Update Profile could not persist profile: %s", exc)
                return self._fail(MSG_SESSION_NOT_SAVED, clear_session=False)
        self.is_loading = False
        return success(user)

    def clear_error(self) -> None:
        self.error = None

    async def forgot_password(self, email: str) -> ActionResult:
        """Ask the backend to mail a reset link."""
        email = (email or "").strip()
        if not validate_email(email):
            return failure("Please enter a valid email address.")
        try:
            payload = await self.api.post("/auth/forgot-password", {"email": email})
        except StorefrontException as exc:
            return failure(error_message(exc, "Failed to send reset link. Please try again."))
        message = payload.get("message") if isinstance(payload, dict) else None
        return success(message or "If an account exists for this email, a reset link has been sent.")

    async def reset_password(self, token: str, password: str, confirm_password: str | None = None) -> ActionResult:
        if not token:
            return failure("Invalid or missing reset token.")
        check = validate_password(password)
        if not check.is_valid:
            return failure(check.errors[0], data=check.errors)
        if confirm_password is not None and confirm_password != password:
            return failure("Passwords do not match.")
        try:
            payload = await self.api.put(f"/auth/reset-password/{path_segment(token)}", {"password": password})
        except StorefrontException as exc:
            return failure(error_message(exc, "Failed to reset password. The link may have expired."))
        message = payload.get("message") if isinstance(payload, dict) else None
        return success(message or "Password has been reset. Please log in.")
