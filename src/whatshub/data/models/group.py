from __future__ import annotations

from enum import StrEnum
from typing import Any, Final, Literal, Self

from pydantic import Field, field_validator

from .common import StoreBaseModel


class Category(StrEnum):
    """Closed set of group topics; values are the labels stored remotely."""

    TECH = "Technologie"
    FUN = "Divertissement"
    BUSINESS = "Business"
    EDUCATION = "Éducation"
    SOCIAL = "Rencontres"
    HOBBIES = "Loisirs"
    SPORTS = "Sports"
    OTHER = "Autre"

    @classmethod
    def parse(cls, value: Any) -> Category:
        """Resolve a stored label or a member name such as ``"Tech"``."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown category: {value!r}")
        text = value.strip()
        for member in cls:
            if text == member.value or text.casefold() == member.value.casefold():
                return member
            if text.upper() == member.name:
                return member
        raise ValueError(f"Unknown category: {value!r}")

    @classmethod
    def choices(cls) -> list[Category]:
        return list(cls)


AllCategories = Literal["All"]
ALL_CATEGORIES: Final[AllCategories] = "All"


class _GroupFields(StoreBaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    link: str = Field(min_length=1)
    category: Category
    members_count: int = Field(default=0, ge=0, alias="membersCount")

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> Category:
        return Category.parse(value)


class Group(_GroupFields):
    """A directory entry for one community chat."""

    id: str = Field(min_length=1)
    is_verified: bool = Field(default=False, alias="isVerified")
    created_at: int = Field(ge=0, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def with_verified(self, value: bool) -> Group:
        return self.model_copy(update={"is_verified": value})


class GroupDraft(_GroupFields):
    """User-editable fields for creating or editing a group.

    Drafts never carry identity, timestamps or the verification flag: those are
    assigned by the store or changed through the admin controls only.
    """

    @classmethod
    def from_group(cls, group: Group) -> Self:
        return cls(
            name=group.name,
            description=group.description,
            link=group.link,
            category=group.category,
            members_count=group.members_count,
        )


__all__ = ["ALL_CATEGORIES", "AllCategories", "Category", "Group", "GroupDraft"]
