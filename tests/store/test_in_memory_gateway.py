from __future__ import annotations

import pytest

from whatshub.data import Category
from whatshub.store import (
    SAMPLE_GROUPS,
    ConfigurationError,
    GroupGateway,
    InMemoryGroupGateway,
    RecordNotFoundError,
    UnconfiguredGroupGateway,
    ValidationError,
)
from tests.factories import make_draft


def test_gateways_satisfy_protocol() -> None:
    assert isinstance(InMemoryGroupGateway(), GroupGateway)
    assert isinstance(UnconfiguredGroupGateway([]), GroupGateway)


def test_sample_groups_cover_several_categories() -> None:
    assert [group.id for group in SAMPLE_GROUPS] == ["1", "2", "3", "4", "5"]
    assert {group.category for group in SAMPLE_GROUPS} >= {Category.TECH, Category.FUN}


@pytest.mark.asyncio
async def test_fetch_all_is_newest_first() -> None:
    gateway = InMemoryGroupGateway(SAMPLE_GROUPS)

    groups = await gateway.fetch_all()

    stamps = [group.created_at for group in groups]
    assert stamps == sorted(stamps, reverse=True)


@pytest.mark.asyncio
async def test_insert_assigns_identity_and_clears_flag() -> None:
    gateway = InMemoryGroupGateway()

    first = await gateway.insert(make_draft(name="One"))
    second = await gateway.insert(make_draft(name="Two"))

    assert first.id != second.id
    assert first.is_verified is False
    assert len(await gateway.fetch_all()) == 2


@pytest.mark.asyncio
async def test_update_changes_only_given_columns() -> None:
    gateway = InMemoryGroupGateway(SAMPLE_GROUPS)

    await gateway.update("2", {"isVerified": True, "membersCount": 5})

    updated = next(group for group in await gateway.fetch_all() if group.id == "2")
    assert updated.is_verified is True
    assert updated.members_count == 5
    assert updated.name == "Business & Crypto"


@pytest.mark.asyncio
async def test_update_rejects_invalid_payloads() -> None:
    gateway = InMemoryGroupGateway(SAMPLE_GROUPS)

    with pytest.raises(ValidationError):
        await gateway.update("2", {"id": "9"})
    with pytest.raises(RecordNotFoundError):
        await gateway.update("missing", {"name": "X"})


@pytest.mark.asyncio
async def test_delete_missing_row_raises() -> None:
    gateway = InMemoryGroupGateway(SAMPLE_GROUPS)

    await gateway.delete("1")

    with pytest.raises(RecordNotFoundError):
        await gateway.delete("1")


@pytest.mark.asyncio
async def test_unconfigured_gateway_names_both_settings() -> None:
    gateway = UnconfiguredGroupGateway(["WHATSHUB_SUPABASE_URL"])

    with pytest.raises(ConfigurationError) as excinfo:
        await gateway.fetch_all()

    message = str(excinfo.value)
    assert "WHATSHUB_SUPABASE_URL" in message
    assert "WHATSHUB_SUPABASE_KEY" in message
    assert excinfo.value.missing == ("WHATSHUB_SUPABASE_URL",)
    assert not excinfo.value.is_retriable
