"""Entity models for directory records."""

from .common import StoreBaseModel
from .group import ALL_CATEGORIES, AllCategories, Category, Group, GroupDraft

__all__ = [
    "ALL_CATEGORIES",
    "AllCategories",
    "Category",
    "Group",
    "GroupDraft",
    "StoreBaseModel",
]
