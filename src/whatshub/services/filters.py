from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from whatshub.data import ALL_CATEGORIES, AllCategories, Category, Group
from whatshub.services.directory import DirectoryService


CategoryFilter = Category | AllCategories


def resolve_category(value: Category | str | None) -> CategoryFilter:
    """Map user input onto a category or the ``"All"`` sentinel."""

    if value is None:
        return ALL_CATEGORIES
    if isinstance(value, Category):
        return value
    text = value.strip()
    if not text or text.casefold() == ALL_CATEGORIES.casefold():
        return ALL_CATEGORIES
    return Category.parse(text)


def filter_groups(
    groups: Iterable[Group],
    search_text: str = "",
    category: Category | str | None = ALL_CATEGORIES,
) -> list[Group]:
    """Return the groups matching the search text and category, in input order.

    The search text matches case-insensitively against the name or the
    description; an empty search matches everything.
    """

    needle = search_text.casefold()
    wanted = resolve_category(category)
    visible: list[Group] = []
    for group in groups:
        if wanted != ALL_CATEGORIES and group.category is not wanted:
            continue
        if needle and needle not in group.name.casefold() and needle not in group.description.casefold():
            continue
        visible.append(group)
    return visible


@dataclass(frozen=True, slots=True)
class DirectorySummary:
    total: int
    verified: int
    per_category: dict[Category, int] = field(default_factory=dict)


def summarize(groups: Sequence[Group]) -> DirectorySummary:
    counts = Counter(group.category for group in groups)
    return DirectorySummary(
        total=len(groups),
        verified=sum(1 for group in groups if group.is_verified),
        per_category={category: counts.get(category, 0) for category in Category},
    )


class DirectoryView:
    """Visitor-facing projection of the directory list.

    The visible subset is recomputed only when the list generation, the search
    text or the category selection changes.
    """

    def __init__(self, service: DirectoryService) -> None:
        self._service = service
        self._search_text = ""
        self._category: CategoryFilter = ALL_CATEGORIES
        self._cache_key: tuple[int, str, CategoryFilter] | None = None
        self._visible: tuple[Group, ...] = ()

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def category(self) -> CategoryFilter:
        return self._category

    def set_search_text(self, text: str) -> None:
        self._search_text = text or ""

    def set_category(self, category: Category | str | None) -> None:
        self._category = resolve_category(category)

    def clear(self) -> None:
        self._search_text = ""
        self._category = ALL_CATEGORIES

    def visible(self) -> tuple[Group, ...]:
        key = (self._service.generation, self._search_text, self._category)
        if key != self._cache_key:
            self._visible = tuple(
                filter_groups(self._service.groups, self._search_text, self._category)
            )
            self._cache_key = key
        return self._visible

    def summary(self) -> DirectorySummary:
        return summarize(self._service.groups)


__all__ = [
    "CategoryFilter",
    "DirectorySummary",
    "DirectoryView",
    "filter_groups",
    "resolve_category",
    "summarize",
]
