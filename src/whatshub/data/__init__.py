"""Data layer: entity models."""

from .models import (
    ALL_CATEGORIES,
    AllCategories,
    Category,
    Group,
    GroupDraft,
    StoreBaseModel,
)

__all__ = [
    "ALL_CATEGORIES",
    "AllCategories",
    "Category",
    "Group",
    "GroupDraft",
    "StoreBaseModel",
]
