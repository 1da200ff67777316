"""Base model for objects exchanged with the REST backend."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python, backend ``_id`` mapped to ``id``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _map_backend_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" in cls.model_fields and not data.get("id") and data.get("_id"):
            data = {**data, "id": data["_id"]}
        return data

    def to_payload(self) -> dict[str, Any]:
        """Serialize with camelCase keys for a request body."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
