from __future__ import annotations

import pytest

from fakes import FakeApi
from storefront.core.exceptions import ApiError
from storefront.domain.content import TextSection, parse_section
from storefront.services.content_service import ContentStore

SERVER_SECTIONS = [
    {"_id": "db1", "contentId": "heroTitle", "type": "text", "title": "Hero", "content": "Diwali Dhamaka Sale"},
    {
        "_id": "db2",
        "contentId": "heroImage",
        "type": "image",
        "title": "Hero image",
        "content": "",
        "metadata": {"imageUrl": "/uploads/hero.jpg", "altText": "Sky shots"},
    },
    {
        "_id": "db3",
        "contentId": "testimonialsData",
        "type": "testimonials",
        "title": "Testimonials",
        "metadata": {
            "testimonials": [
                {"name": "Priya", "location": "Chennai", "rating": 5, "comment": "Safe and bright!"},
            ]
        },
    },
    {
        "_id": "db4",
        "contentId": "featuresData",
        "type": "features",
        "metadata": {"features": [{"icon": "shield", "title": "Certified", "description": "PESO licensed"}]},
    },
]


@pytest.fixture
def content() -> ContentStore:
    return ContentStore(FakeApi())


@pytest.mark.asyncio
async def test_fetch_keys_sections_by_content_id(content) -> None:
    content.api.on("GET", "/content", SERVER_SECTIONS)

    result = await content.fetch_content()

    assert result.ok
    assert [section.content_id for section in content.content_sections] == [
        "heroTitle", "heroImage", "testimonialsData", "featuresData",
    ]
    hero = content.get_content("heroTitle")
    assert hero.storage_id == "db1"
    assert hero.id == "heroTitle"
    assert not content.is_loading


@pytest.mark.asyncio
async def test_server_value_wins_over_default(content) -> None:
    assert content.get_content_value("heroTitle") == "Light Up Your Festival!"
    content.api.on("GET", "/content", SERVER_SECTIONS)

    await content.fetch_content()

    assert content.get_content_value("heroTitle") == "Diwali Dhamaka Sale"
    # Keys the server does not know keep their default copy.
    assert content.get_content_value("companyName") == "Akash Crackers"


def test_unknown_key_uses_caller_default(content) -> None:
    assert content.get_content("noSuchKey") is None
    assert content.get_content_value("noSuchKey") == ""
    assert content.get_content_value("noSuchKey", "fallback") == "fallback"
    assert content.get_content_metadata("noSuchKey") == {}


@pytest.mark.asyncio
async def test_metadata_and_structured_getters(content) -> None:
    content.api.on("GET", "/content", SERVER_SECTIONS)
    await content.fetch_content()

    assert content.get_content_metadata("heroImage") == {"imageUrl": "/uploads/hero.jpg", "altText": "Sky shots"}
    assert [t.name for t in content.get_testimonials()] == ["Priya"]
    assert content.get_features()[0].title == "Certified"
    assert content.get_steps() == []


def test_structured_getters_are_empty_before_load(content) -> None:
    assert content.get_testimonials() == []
    assert content.get_features() == []
    assert content.get_steps() == []


@pytest.mark.asyncio
async def test_malformed_sections_are_skipped(content) -> None:
    content.api.on(
        "GET",
        "/content",
        [{"contentId": "", "type": "text"}, {"contentId": "x", "type": "carousel"}, SERVER_SECTIONS[0]],
    )

    result = await content.fetch_content()

    assert result.ok
    assert [section.content_id for section in content.content_sections] == ["heroTitle"]


@pytest.mark.asyncio
async def test_null_metadata_and_content_are_tolerated(content) -> None:
    content.api.on("GET", "/content", [{"contentId": "heroVideo", "type": "video", "content": None, "metadata": None}])

    await content.fetch_content()

    assert content.get_content_value("heroVideo", "none") == "none"
    assert content.get_content_metadata("heroVideo") == {}


@pytest.mark.asyncio
async def test_fetch_failure_sets_error_and_clears_server_sections(content) -> None:
    content.api.on("GET", "/content", SERVER_SECTIONS)
    await content.fetch_content()
    content.api.on("GET", "/content", ApiError("Network Error"))

    result = await content.fetch_content()

    assert result.error == "Network Error"
    assert content.error == "Network Error"
    assert content.content_sections == []
    assert content.get_content_value("heroTitle") == "Light Up Your Festival!"


@pytest.mark.asyncio
async def test_non_array_payload_is_an_error(content) -> None:
    content.api.on("GET", "/content", {"sections": []})

    result = await content.fetch_content()

    assert result.error == "Invalid response data"


@pytest.mark.asyncio
async def test_update_sends_full_array_and_replaces(content) -> None:
    content.api.on("GET", "/content", SERVER_SECTIONS)
    await content.fetch_content()
    edited = [
        TextSection(content_id="heroTitle", title="Hero", content="Pongal Offers"),
        {"contentId": "companyPhone", "type": "text", "content": "+91 90000 00000"},
    ]
    content.api.on("PUT", "/content", lambda body: body)

    result = await content.update_content(edited)

    assert result.ok
    sent = content.api.body("PUT", "/content")
    assert sent[0]["contentId"] == "heroTitle"
    assert sent[0]["content"] == "Pongal Offers"
    assert content.get_content_value("heroTitle") == "Pongal Offers"
    assert content.get_content_value("companyPhone") == "+91 90000 00000"
    # Sections absent from the update response are gone.
    assert content.get_content("heroImage") is None


@pytest.mark.asyncio
async def test_update_failure_keeps_current_sections(content) -> None:
    content.api.on("GET", "/content", SERVER_SECTIONS)
    await content.fetch_content()
    content.api.on("PUT", "/content", ApiError("x", status=403, payload={"message": "Not authorized as an admin"}))

    result = await content.update_content([parse_section(SERVER_SECTIONS[0])])

    assert result.error == "Not authorized as an admin"
    assert len(content.content_sections) == 4


@pytest.mark.asyncio
async def test_update_with_non_array_response(content) -> None:
    content.api.on("PUT", "/content", {"ok": True})

    result = await content.update_content([])

    assert result.error == "Invalid response data after update"


@pytest.mark.asyncio
async def test_refresh_refetches(content) -> None:
    content.api.on("GET", "/content", [], SERVER_SECTIONS)

    await content.fetch_content()
    await content.refresh_content()

    assert content.api.called() == ["GET /content", "GET /content"]
    assert len(content.content_sections) == 4
