"""Admin-editable content sections, keyed by a stable ``contentId``.

Sections form a tagged union on ``type``. The backend's own ``_id`` is kept
only as ``storage_id``; every lookup goes through ``content_id``.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel


class _ContentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class TestimonialData(_ContentModel):
    __test__ = False

    name: str = ""
    location: str = ""
    rating: float = 5
    comment: str = ""
    image: str = ""


class FeatureData(_ContentModel):
    icon: str = ""
    title: str = ""
    description: str = ""


class StepData(_ContentModel):
    icon: str = ""
    title: str = ""
    description: str = ""


class ContentMetadata(_ContentModel):
    """Flexible metadata; which keys are set depends on the section type."""

    model_config = ConfigDict(extra="allow")

    image_url: str | None = None
    video_url: str | None = None
    alt_text: str | None = None
    testimonials: list[TestimonialData] | None = None
    features: list[FeatureData] | None = None
    steps: list[StepData] | None = None


class _SectionBase(_ContentModel):
    content_id: str = Field(..., min_length=1, description="Stable logical key")
    storage_id: str | None = Field(None, alias="_id", description="Backend document id")
    title: str = ""
    content: str = ""
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)
    last_updated_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_metadata(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("metadata") is None:
                data["metadata"] = {}
            if data.get("content") is None:
                data["content"] = ""
        return data

    @property
    def id(self) -> str:
        return self.content_id

    def metadata_dict(self) -> dict[str, Any]:
        return self.metadata.model_dump(by_alias=True, exclude_none=True)

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        payload["metadata"] = self.metadata_dict()
        return payload


class TextSection(_SectionBase):
    type: Literal["text"] = "text"


class ImageSection(_SectionBase):
    type: Literal["image"] = "image"


class VideoSection(_SectionBase):
    type: Literal["video"] = "video"


class TestimonialsSection(_SectionBase):
    __test__ = False

    type: Literal["testimonials"] = "testimonials"


class FeaturesSection(_SectionBase):
    type: Literal["features"] = "features"


class StepsSection(_SectionBase):
    type: Literal["steps"] = "steps"


ContentSection = Annotated[
    Union[
        TextSection,
        ImageSection,
        VideoSection,
        TestimonialsSection,
        FeaturesSection,
        StepsSection,
    ],
    Field(discriminator="type"),
]

_section_adapter: TypeAdapter[ContentSection] = TypeAdapter(ContentSection)


def parse_section(data: Any) -> ContentSection:
    return _section_adapter.validate_python(data)


TESTIMONIALS_KEY = "testimonialsData"
FEATURES_KEY = "featuresData"
STEPS_KEY = "howItWorksData"

# Copy shown while the backend has no value for a known key.
DEFAULT_CONTENT: dict[str, str] = {
    "companyName": "Akash Crackers",
    "companyTagline": "Premium Sivakasi Fireworks",
    "companyPhone": "+91 98765 43210",
    "companyEmail": "info@sparklecrackers.com",
    "companyAddress": "123 Fireworks Street, Sivakasi, Tamil Nadu 626123",
    "supportPhone": "+918870296456",
    "headerAnnouncement": "🎆 Festival Special Offers! Free Delivery on Orders Above ₹2000 🎆",
    "heroTitle": "Light Up Your Festival!",
    "heroSubtitle": (
        "Premium quality crackers from Sivakasi. Safe, colorful, and guaranteed "
        "to make your celebrations unforgettable!"
    ),
    "heroRatingText": "Rated 4.9/5 by 10,000+ customers",
    "heroCtaPrimary": "Shop Now 🛒",
    "heroCtaSecondary": "Watch Demo",
    "heroStat1Number": "500+",
    "heroStat1Label": "Products",
    "heroStat2Number": "10K+",
    "heroStat2Label": "Happy Customers",
    "heroStat3Number": "15+",
    "heroStat3Label": "Years Experience",
    "heroSpecialOffer": "🎉 Festival Special!",
    "featuresSection": "Why Choose Us?",
    "howItWorksSection": "How It Works",
    "testimonialsSection": "What Our Customers Say",
    "footerCompanyDescription": (
        "Your trusted partner for safe, colorful, and memorable festival "
        "celebrations with premium quality crackers from Sivakasi."
    ),
    "footerNewsletterTitle": "Stay Updated",
    "footerNewsletterDescription": "Subscribe to get special offers and festival updates!",
    "footerCopyright": (
        "© 2025 Akash Crackers. All rights reserved. | Licensed by Govt. of Tamil Nadu"
    ),
}


def default_sections() -> dict[str, ContentSection]:
    """Text sections for every key in ``DEFAULT_CONTENT``."""
    return {
        key: TextSection(content_id=key, title=key, content=value)
        for key, value in DEFAULT_CONTENT.items()
    }
