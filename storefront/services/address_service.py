"""Address book of the signed-in user. Every write is followed by a re-fetch."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from storefront.core.constants import MSG_INVALID_RESPONSE, MSG_NOT_LOGGED_IN
from storefront.core.exceptions import InvalidResponseError, StorefrontException, error_message
from storefront.core.validation import missing_fields, validate_phone, validate_pincode
from storefront.domain.entities.address import ADDRESS_REQUIRED_FIELDS, SavedAddress
from storefront.integrations.api_client import ApiClient, expect_list, path_segment
from storefront.services.results import ActionResult, failure, success
from storefront.services.session import Session

logger = logging.getLogger("storefront.addresses")

MSG_ADDRESS_REQUIRED = "Required fields (*)."
MSG_INVALID_PINCODE = "Invalid Pincode."
MSG_INVALID_PHONE = "Invalid Phone."


def validate_address(fields: Mapping[str, Any]) -> str | None:
    """First problem with an address form, or None when it can be sent."""
    if missing_fields(fields, ADDRESS_REQUIRED_FIELDS):
        return MSG_ADDRESS_REQUIRED
    if not validate_pincode(str(fields["pincode"]).strip()):
        return MSG_INVALID_PINCODE
    if not validate_phone(str(fields["phone"])):
        return MSG_INVALID_PHONE
    return None


def parse_addresses(payload: Any) -> list[SavedAddress]:
    try:
        return [SavedAddress.model_validate(item) for item in expect_list(payload)]
    except ValidationError as exc:
        raise InvalidResponseError(MSG_INVALID_RESPONSE, payload=payload) from exc


class AddressStore:
    def __init__(self, session: Session, api: ApiClient):
        self.session = session
        self.api = api
        self.addresses: list[SavedAddress] = []
        self.is_loading = False
        self.error: str | None = None

    @property
    def default_address(self) -> SavedAddress | None:
        return next((a for a in self.addresses if a.is_default), None)

    async def fetch_addresses(self) -> ActionResult:
        if not self.session.is_authenticated:
            self.addresses = []
            return failure(MSG_NOT_LOGGED_IN)

        self.is_loading = True
        try:
            addresses = parse_addresses(await self.api.get("/users/addresses"))
        except StorefrontException as exc:
            self.error = error_message(exc, "Failed load.")
            logger.error("Error fetching addresses: %s", self.error)
            return failure(self.error)
        finally:
            self.is_loading = False

        self.addresses = addresses
        self.error = None
        return success(addresses)

    async def save_address(self, fields: Mapping[str, Any], address_id: str | None = None) -> ActionResult:
        """Create, or update when ``address_id`` is given; validated before any request."""
        if not self.session.is_authenticated:
            return failure(MSG_NOT_LOGGED_IN)

        problem = validate_address(fields)
        if problem:
            return failure(problem)

        body = {key: value for key, value in fields.items() if key not in ("id", "_id")}
        try:
            if address_id:
                await self.api.put(f"/users/addresses/{path_segment(address_id)}", body)
            else:
                await self.api.post("/users/addresses", body)
        except StorefrontException as exc:
            message = error_message(exc, "Save failed.")
            logger.error("Error saving address: %s", message)
            return failure(message)

        await self.fetch_addresses()
        return success(self.addresses)

    async def _write_then_refetch(self, request, fallback: str) -> ActionResult:
        self.is_loading = True
        try:
            await request
        except StorefrontException as exc:
            message = error_message(exc, fallback)
            logger.error("%s %s", fallback, message)
            await self.fetch_addresses()
            self.error = message
            return failure(message)
        finally:
            self.is_loading = False

        await self.fetch_addresses()
        return success(self.addresses)

    async def delete_address(self, address_id: str) -> ActionResult:
        if not self.session.is_authenticated:
            return failure(MSG_NOT_LOGGED_IN)
        return await self._write_then_refetch(
            self.api.delete(f"/users/addresses/{path_segment(address_id)}"),
            "Delete failed.",
        )

    async def set_default(self, address_id: str) -> ActionResult:
        if not self.session.is_authenticated:
            return failure(MSG_NOT_LOGGED_IN)
        return await self._write_then_refetch(
            self.api.put(f"/users/addresses/{path_segment(address_id)}/default"),
            "Set default failed.",
        )
