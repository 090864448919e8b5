from __future__ import annotations

import time
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable
from uuid import uuid4

from whatshub.data import Category, Group, GroupDraft
from whatshub.store.client import StoreClientFactory
from whatshub.store.errors import (
    ConfigurationError,
    ConnectivityError,
    RecordNotFoundError,
    ValidationError,
)
from whatshub.store.rows import GroupRowValidator, column_payload
from whatshub.utils.logging import get_logger


logger = get_logger(__name__)

RETURN_REPRESENTATION = {"Prefer": "return=representation"}


@runtime_checkable
class GroupGateway(Protocol):
    """Operations over the remote collection of group rows."""

    async def fetch_all(self) -> list[Group]: ...

    async def insert(self, draft: GroupDraft) -> Group: ...

    async def update(self, group_id: str, fields: Mapping[str, Any]) -> None: ...

    async def delete(self, group_id: str) -> None: ...


class SupabaseGroupGateway:
    """PostgREST-backed gateway for the ``groups`` table."""

    def __init__(self, client_factory: StoreClientFactory, table: str = "groups") -> None:
        self._client_factory = client_factory
        self._table = table
        self._validator = GroupRowValidator(table)

    @property
    def table(self) -> str:
        return self._table

    async def fetch_all(self) -> list[Group]:
        payload = await self._client_factory.request_json(
            "GET",
            f"/{self._table}",
            params={"select": "*", "order": "created_at.desc"},
        )
        rows = self._rows(payload)
        groups = self._validator.parse_rows(rows)
        groups.sort(key=lambda group: group.created_at, reverse=True)
        logger.debug("Fetched groups", table=self._table, count=len(groups))
        return groups

    async def insert(self, draft: GroupDraft) -> Group:
        body = draft.to_row()
        body["isVerified"] = False
        payload = await self._client_factory.request_json(
            "POST",
            f"/{self._table}",
            json_body=body,
            headers=dict(RETURN_REPRESENTATION),
        )
        rows = self._rows(payload)
        if not rows:
            raise ConnectivityError("The group database did not return the created row")
        created = self._validator.parse_row(rows[0])
        logger.debug("Inserted group", group_id=created.id)
        return created

    async def update(self, group_id: str, fields: Mapping[str, Any]) -> None:
        try:
            body = column_payload(fields)
        except ValueError as exc:
            raise ValidationError(str(exc), inner_error=exc) from exc
        if not body:
            return
        payload = await self._client_factory.request_json(
            "PATCH",
            f"/{self._table}",
            params={"id": f"eq.{group_id}"},
            json_body=body,
            headers=dict(RETURN_REPRESENTATION),
        )
        if not self._rows(payload):
            raise RecordNotFoundError(group_id)
        logger.debug("Updated group", group_id=group_id, columns=sorted(body))

    async def delete(self, group_id: str) -> None:
        payload = await self._client_factory.request_json(
            "DELETE",
            f"/{self._table}",
            params={"id": f"eq.{group_id}"},
            headers=dict(RETURN_REPRESENTATION),
        )
        if not self._rows(payload):
            raise RecordNotFoundError(group_id)
        logger.debug("Deleted group", group_id=group_id)

    async def close(self) -> None:
        await self._client_factory.close()

    @staticmethod
    def _rows(payload: Any) -> list[dict[str, Any]]:
        if payload is None:
            return []
        if isinstance(payload, dict):
            return [payload]
        if isinstance(payload, list):
            return [item for item in payload if isinstance(item, dict)]
        raise ConnectivityError("The group database returned an unexpected payload")


class InMemoryGroupGateway:
    """Process-local gateway with the same contract as the remote store."""

    def __init__(self, groups: Iterable[Group] = ()) -> None:
        self._rows: dict[str, Group] = {group.id: group for group in groups}

    async def fetch_all(self) -> list[Group]:
        return sorted(self._rows.values(), key=lambda group: group.created_at, reverse=True)

    async def insert(self, draft: GroupDraft) -> Group:
        group = Group(
            id=str(uuid4()),
            name=draft.name,
            description=draft.description,
            link=draft.link,
            category=draft.category,
            members_count=draft.members_count,
            is_verified=False,
            created_at=int(time.time() * 1000),
        )
        self._rows[group.id] = group
        return group

    async def update(self, group_id: str, fields: Mapping[str, Any]) -> None:
        current = self._rows.get(group_id)
        if current is None:
            raise RecordNotFoundError(group_id)
        try:
            body = column_payload(fields)
        except ValueError as exc:
            raise ValidationError(str(exc), inner_error=exc) from exc
        row = current.to_row()
        row.update(body)
        self._rows[group_id] = Group.from_row(row)

    async def delete(self, group_id: str) -> None:
        if self._rows.pop(group_id, None) is None:
            raise RecordNotFoundError(group_id)

    async def close(self) -> None:
        return None


class UnconfiguredGroupGateway:
    """Stands in when connection settings are missing; every call fails fast."""

    def __init__(self, missing: Iterable[str]) -> None:
        self._missing = tuple(missing)

    async def fetch_all(self) -> list[Group]:
        raise ConfigurationError(missing=self._missing)

    async def insert(self, draft: GroupDraft) -> Group:
        raise ConfigurationError(missing=self._missing)

    async def update(self, group_id: str, fields: Mapping[str, Any]) -> None:
        raise ConfigurationError(missing=self._missing)

    async def delete(self, group_id: str) -> None:
        raise ConfigurationError(missing=self._missing)

    async def close(self) -> None:
        return None


def _sample_groups() -> list[Group]:
    now = int(time.time() * 1000)
    samples = [
        (
            "Dev React France",
            "Rejoignez la plus grande communauté de développeurs React en France. "
            "Entraide, veille technologique et bonne humeur !",
            Category.TECH,
            245,
            True,
            10_000_000,
        ),
        (
            "Business & Crypto",
            "Discussions sérieuses sur l'entrepreneuriat, les crypto-monnaies et les "
            "investissements passifs. Pas de spam svp.",
            Category.BUSINESS,
            890,
            False,
            5_000_000,
        ),
        (
            "Randonnées Paris",
            "Groupe pour organiser des sorties rando autour de Paris le week-end. "
            "Tous niveaux acceptés.",
            Category.SPORTS,
            120,
            True,
            2_000_000,
        ),
        (
            "Apprendre l'Anglais",
            "Practice your English skills daily with native speakers and learners. "
            "Voice notes encouraged!",
            Category.EDUCATION,
            56,
            False,
            0,
        ),
        (
            "Memes 24/7",
            "Le meilleur de l'humour internet. Attention, contenu parfois décalé.",
            Category.FUN,
            1024,
            True,
            80_000_000,
        ),
    ]
    return [
        Group(
            id=str(index),
            name=name,
            description=description,
            link=f"https://chat.whatsapp.com/example{index}",
            category=category,
            members_count=members,
            is_verified=verified,
            created_at=now - age,
        )
        for index, (name, description, category, members, verified, age) in enumerate(
            samples, start=1
        )
    ]


SAMPLE_GROUPS: tuple[Group, ...] = tuple(_sample_groups())


__all__ = [
    "GroupGateway",
    "InMemoryGroupGateway",
    "SAMPLE_GROUPS",
    "SupabaseGroupGateway",
    "UnconfiguredGroupGateway",
]
