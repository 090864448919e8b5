"""Translation between PostgREST rows and the group entity model.

This is the only module that knows about inconsistent column casing and
about how the table stores timestamps.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from whatshub.data import Category, Group
from whatshub.store.errors import DataIntegrityError
from whatshub.utils.logging import get_logger


logger = get_logger(__name__)

IMMUTABLE_COLUMNS = frozenset({"id", "createdAt", "created_at"})

# Columns the store may report either camelCased or folded to lowercase.
_CASE_FALLBACKS: tuple[tuple[str, str, Any], ...] = (
    ("membersCount", "memberscount", 0),
    ("isVerified", "isverified", False),
)


def _timestamp_ms(value: Any) -> int | None:
    """Epoch milliseconds, or ``None`` when the value is not a usable instant."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        return int(moment.timestamp() * 1000)
    except (OverflowError, ValueError, OSError):
        return None


def normalise_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Map a raw store row onto the entity model's column aliases."""

    normalised: dict[str, Any] = {
        "id": row.get("id"),
        "name": row.get("name"),
        "description": row.get("description"),
        "link": row.get("link"),
        "category": row.get("category"),
    }
    for camel, lower, default in _CASE_FALLBACKS:
        value = row.get(camel)
        if value is None:
            value = row.get(lower)
        normalised[camel] = default if value is None else value
    created = row.get("created_at")
    if created is None:
        created = row.get("createdAt")
    normalised["createdAt"] = _timestamp_ms(created)
    return normalised


def group_from_row(row: Mapping[str, Any]) -> Group:
    return Group.from_row(normalise_row(row))


def column_payload(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Translate model or column field names into a store update payload."""

    aliases = {
        name: info.alias or name for name, info in Group.model_fields.items()
    }
    payload: dict[str, Any] = {}
    for key, value in fields.items():
        column = aliases.get(key, key)
        if column in IMMUTABLE_COLUMNS:
            raise ValueError(f"Column {column!r} cannot be updated")
        if column.lower() in {"memberscount", "isverified"}:
            column = "membersCount" if column.lower() == "memberscount" else "isVerified"
        if column == "category":
            value = Category.parse(value)
        if isinstance(value, Enum):
            value = value.value
        payload[column] = value
    return payload


@dataclass(frozen=True, slots=True)
class RejectedRow:
    """A store row that could not become a ``Group``."""

    identifier: str | None
    columns: tuple[str, ...]


class GroupRowValidator:
    """Parse a batch of rows all-or-nothing.

    Every bad row in the batch is logged and handed to ``on_reject`` before a
    single ``DataIntegrityError`` naming all of them is raised, so one broken
    row never leaves a silently shortened list behind.
    """

    def __init__(
        self,
        table: str,
        *,
        on_reject: Callable[[RejectedRow], None] | None = None,
    ) -> None:
        self._table = table
        self._on_reject = on_reject

    def parse_row(self, row: Mapping[str, Any]) -> Group:
        return self.parse_rows([row])[0]

    def parse_rows(self, rows: Iterable[Mapping[str, Any]]) -> list[Group]:
        groups: list[Group] = []
        rejected: list[RejectedRow] = []
        for row in rows:
            try:
                groups.append(group_from_row(row))
            except PydanticValidationError as exc:
                rejected.append(self._reject(row, exc))
        if rejected:
            raise DataIntegrityError(
                f"{len(rejected)} row(s) in {self._table!r} failed validation",
                identifiers=[item.identifier for item in rejected],
            )
        return groups

    def _reject(self, row: Mapping[str, Any], exc: PydanticValidationError) -> RejectedRow:
        raw_id = row.get("id")
        item = RejectedRow(
            identifier=None if raw_id is None else str(raw_id),
            columns=tuple(str(error["loc"][0]) for error in exc.errors() if error.get("loc")),
        )
        logger.warning(
            "Rejected group row",
            table=self._table,
            group_id=item.identifier,
            columns=", ".join(item.columns) or "unknown",
        )
        if self._on_reject is not None:
            self._on_reject(item)
        return item


__all__ = [
    "GroupRowValidator",
    "IMMUTABLE_COLUMNS",
    "RejectedRow",
    "column_payload",
    "group_from_row",
    "normalise_row",
]
