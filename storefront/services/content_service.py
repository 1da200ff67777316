"""
Content store.

Sections are keyed by their stable ``contentId``. Server values are merged
over ``DEFAULT_CONTENT`` at load time, so every getter answers without the
caller supplying its own fallback.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError

from storefront.core.exceptions import InvalidResponseError, StorefrontException, error_message
from storefront.domain.content import (
    FEATURES_KEY,
    STEPS_KEY,
    TESTIMONIALS_KEY,
    ContentSection,
    FeatureData,
    StepData,
    TestimonialData,
    default_sections,
    parse_section,
)
from storefront.integrations.api_client import ApiClient, expect_list
from storefront.services.results import ActionResult, failure, success

logger = logging.getLogger("storefront.content")


def _parse_sections(payload: Any) -> list[ContentSection]:
    sections: list[ContentSection] = []
    for raw in expect_list(payload):
        try:
            sections.append(parse_section(raw))
        except ValidationError as exc:
            logger.warning("Skipping malformed content section %r: %s", _raw_key(raw), exc.errors()[:1])
    return sections


def _raw_key(raw: Any) -> Any:
    return raw.get("contentId") if isinstance(raw, dict) else raw


class ContentStore:
    """Server content sections layered over the built-in defaults."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.sections: dict[str, ContentSection] = {}
        self._merged: dict[str, ContentSection] = default_sections()
        self.is_loading = False
        self.error: str | None = None

    @property
    def content_sections(self) -> list[ContentSection]:
        """Sections the server returned, in server order."""
        return list(self.sections.values())

    def _replace(self, sections: Iterable[ContentSection]) -> None:
        self.sections = {section.content_id: section for section in sections}
        self._merged = {**default_sections(), **self.sections}

    async def fetch_content(self) -> ActionResult:
        self.is_loading = True
        self.error = None
        logger.debug("Fetching content from API...")
        try:
            sections = _parse_sections(await self.api.get("/content"))
        except StorefrontException as exc:
            message = error_message(exc, "Failed to load content")
            logger.error("Error fetching content: %s", message)
            self.error = message
            self._replace([])
            return failure(message)
        finally:
            self.is_loading = False

        self._replace(sections)
        logger.debug("Fetched content sections: %s", len(sections))
        return success(self.content_sections)

    async def refresh_content(self) -> ActionResult:
        return await self.fetch_content()

    async def update_content(self, sections: Iterable[ContentSection | dict[str, Any]]) -> ActionResult:
        """Admin write-back of the full section array."""
        try:
            body = [
                (section if isinstance(section, dict) else section.to_payload())
                for section in sections
            ]
        except AttributeError as exc:
            return failure(f"Invalid content section: {exc}")

        self.is_loading = True
        self.error = None
        logger.info("Sending %s content sections to API", len(body))
        try:
            payload = await self.api.put("/content", body)
            if not isinstance(payload, list):
                raise InvalidResponseError("Invalid response data after update", payload=payload)
            updated = _parse_sections(payload)
        except StorefrontException as exc:
            message = error_message(exc, "Failed to save content")
            logger.error("Error updating content: %s", message)
            self.error = message
            return failure(message)
        finally:
            self.is_loading = False

        self._replace(updated)
        logger.info("Content update successful")
        return success(self.content_sections)

    def get_content(self, content_id: str) -> ContentSection | None:
        return self._merged.get(content_id)

    def get_content_value(self, content_id: str, default: str = "") -> str:
        section = self._merged.get(content_id)
        if section is None or not section.content:
            return default
        return section.content

    def get_content_metadata(self, content_id: str) -> dict[str, Any]:
        section = self._merged.get(content_id)
        return section.metadata_dict() if section is not None else {}

    def get_testimonials(self) -> list[TestimonialData]:
        section = self._merged.get(TESTIMONIALS_KEY)
        return list(section.metadata.testimonials or []) if section is not None else []

    def get_features(self) -> list[FeatureData]:
        section = self._merged.get(FEATURES_KEY)
        return list(section.metadata.features or []) if section is not None else []

    def get_steps(self) -> list[StepData]:
        section = self._merged.get(STEPS_KEY)
        return list(section.metadata.steps or []) if section is not None else []
