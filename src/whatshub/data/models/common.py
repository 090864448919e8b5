from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class StoreBaseModel(BaseModel):
    """Base class for records exchanged with the remote store."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    @classmethod
    def from_row(cls, payload: dict[str, Any]) -> Self:
        """Hydrate a model from a normalised store row."""
        return cls.model_validate(payload)

    def to_row(self) -> dict[str, Any]:
        """Serialize to the column names the store expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
