from __future__ import annotations

from datetime import datetime, timezone

import pytest

from whatshub.data import Category
from whatshub.store import (
    DataIntegrityError,
    GroupRowValidator,
    RejectedRow,
    column_payload,
    group_from_row,
    normalise_row,
)
from tests.factories import make_row


def test_lowercase_columns_fall_back() -> None:
    row = make_row(group_id="7")
    del row["membersCount"]
    del row["isVerified"]
    row["memberscount"] = 42
    row["isverified"] = True

    group = group_from_row(row)

    assert group.members_count == 42
    assert group.is_verified is True


def test_camel_case_wins_when_both_present() -> None:
    row = make_row(group_id="7", membersCount=3, memberscount=99)

    assert normalise_row(row)["membersCount"] == 3


def test_missing_counters_default_to_zero_and_false() -> None:
    row = make_row(group_id="7")
    del row["membersCount"]
    del row["isVerified"]

    group = group_from_row(row)

    assert group.members_count == 0
    assert group.is_verified is False


@pytest.mark.parametrize(
    "created",
    [
        "2024-03-01T10:00:00+00:00",
        "2024-03-01T10:00:00",
        datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
        1_709_287_200_000,
    ],
)
def test_created_at_becomes_epoch_milliseconds(created) -> None:
    row = make_row(group_id="7")
    row["created_at"] = created

    assert group_from_row(row).created_at == 1_709_287_200_000


def test_created_at_camel_case_is_accepted() -> None:
    row = make_row(group_id="7")
    del row["created_at"]
    row["createdAt"] = 5

    assert group_from_row(row).created_at == 5


def test_numeric_ids_are_strings() -> None:
    assert group_from_row(make_row(group_id=15)).id == "15"  # type: ignore[arg-type]


def test_column_payload_maps_field_names_and_categories() -> None:
    payload = column_payload(
        {"members_count": 4, "is_verified": True, "category": "tech", "name": "X"}
    )

    assert payload == {
        "membersCount": 4,
        "isVerified": True,
        "category": Category.TECH.value,
        "name": "X",
    }


def test_column_payload_folds_lowercase_columns() -> None:
    assert column_payload({"isverified": False}) == {"isVerified": False}


@pytest.mark.parametrize("column", ["id", "created_at", "createdAt"])
def test_column_payload_rejects_immutable_columns(column) -> None:
    with pytest.raises(ValueError):
        column_payload({column: "x"})


@pytest.mark.parametrize("created", [1e400, float("-inf"), float("nan"), "not-a-date"])
def test_unusable_timestamps_are_dropped(created) -> None:
    row = make_row(group_id="7")
    row["created_at"] = created

    assert normalise_row(row)["createdAt"] is None


def test_validator_rejects_whole_batch_naming_every_bad_row() -> None:
    rejected: list[RejectedRow] = []
    validator = GroupRowValidator("groups", on_reject=rejected.append)
    rows = [
        make_row(group_id="ok"),
        make_row(group_id="bad-category", category="Gardening"),
        make_row(group_id="bad-time", created_at="yesterday"),
    ]

    with pytest.raises(DataIntegrityError) as excinfo:
        validator.parse_rows(rows)

    assert excinfo.value.identifiers == ("bad-category", "bad-time")
    assert [item.identifier for item in rejected] == ["bad-category", "bad-time"]
    assert rejected[0].columns == ("category",)
    assert rejected[1].columns == ("createdAt",)


def test_validator_parses_single_row() -> None:
    group = GroupRowValidator("groups").parse_row(make_row(group_id="ok"))

    assert group.id == "ok"
    assert group.members_count == 5
