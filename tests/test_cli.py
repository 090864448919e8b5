from __future__ import annotations

import io
import json

import pytest

from whatshub.bootstrap import DirectoryApp, build_directory
from whatshub.cli import EXIT_CONFIGURATION, EXIT_FAILURE, EXIT_OK, build_parser, main
from whatshub.store import SAMPLE_GROUPS, InMemoryGroupGateway, UnconfiguredGroupGateway
from tests.factories import make_settings


@pytest.fixture
def demo_app() -> DirectoryApp:
    return build_directory(make_settings(), gateway=InMemoryGroupGateway(SAMPLE_GROUPS))


def _run(app: DirectoryApp, *argv: str, prompt=lambda: "admin") -> tuple[int, str]:
    out = io.StringIO()
    code = main(list(argv), app=app, out=out, prompt=prompt)
    return code, out.getvalue()


def _ids(app: DirectoryApp) -> set[str]:
    return {group.id for group in app.service.groups}


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_list_prints_every_group(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "list")

    assert code == EXIT_OK
    for group in SAMPLE_GROUPS:
        assert group.name in output


def test_list_filters_by_search_and_category(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "list", "--search", "paris", "--category", "Sports")

    assert code == EXIT_OK
    assert "Randonnées Paris" in output
    assert "Dev React France" not in output


def test_list_json_emits_store_rows(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "list", "--json", "--category", "Tech")

    rows = json.loads(output)
    assert code == EXIT_OK
    assert [row["name"] for row in rows] == ["Dev React France"]
    assert rows[0]["membersCount"] == 245


def test_list_without_matches(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "list", "--search", "zzz-no-match")

    assert code == EXIT_OK
    assert "No groups found." in output


def test_list_rejects_unknown_category(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "list", "--category", "Gardening")

    assert code == EXIT_FAILURE
    assert "Unknown category" in output


def test_stats_counts_groups(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "stats")

    assert code == EXIT_OK
    assert "Total: 5 (3 verified)" in output
    assert "Technologie: 1" in output


def test_add_creates_group(demo_app: DirectoryApp) -> None:
    code, output = _run(
        demo_app,
        "add",
        "--name",
        "Python Paris",
        "--description",
        "Meetups",
        "--link",
        "https://chat.whatsapp.com/py",
        "--category",
        "Tech",
        "--members",
        "3",
    )

    assert code == EXIT_OK
    assert "Added Python Paris." in output
    assert any(group.name == "Python Paris" for group in demo_app.service.groups)


def test_add_reports_field_errors(demo_app: DirectoryApp) -> None:
    code, output = _run(
        demo_app,
        "add",
        "--name",
        "Broken",
        "--description",
        "Meetups",
        "--link",
        "https://chat.whatsapp.com/py",
        "--category",
        "Tech",
        "--members",
        "-4",
    )

    assert code == EXIT_FAILURE
    assert "members_count" in output
    assert len(demo_app.service.groups) == 5


def test_delete_with_correct_credential(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "delete", "2")

    assert code == EXIT_OK
    assert "Deleted 2." in output
    assert "2" not in _ids(demo_app)


def test_delete_with_wrong_credential_is_refused(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "delete", "2", prompt=lambda: "nope")

    assert code == EXIT_FAILURE
    assert "Incorrect credential." in output
    assert "2" in _ids(demo_app)


def test_delete_with_empty_credential_does_nothing(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "delete", "2", prompt=lambda: "")

    assert code == EXIT_OK
    assert output == ""
    assert "2" in _ids(demo_app)


def test_verify_and_unverify(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "verify", "2")
    assert code == EXIT_OK
    assert "Marked 2 as verified." in output
    assert demo_app.service.get("2").is_verified is True

    code, _ = _run(demo_app, "unverify", "2")
    assert code == EXIT_OK
    assert demo_app.service.get("2").is_verified is False


def test_edit_updates_selected_fields(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "edit", "4", "--name", "Learn English")

    assert code == EXIT_OK
    assert "Saved Learn English." in output
    edited = demo_app.service.get("4")
    assert edited.name == "Learn English"
    assert edited.members_count == 56


def test_edit_unknown_group(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "edit", "404", "--name", "Ghost")

    assert code == EXIT_FAILURE
    assert "No group with id '404'." in output


def test_delete_unknown_group_reports_store_error(demo_app: DirectoryApp) -> None:
    code, output = _run(demo_app, "delete", "404")

    assert code == EXIT_FAILURE
    assert "That group no longer exists." in output


def test_unconfigured_store_exits_with_configuration_code() -> None:
    app = build_directory(
        make_settings(supabase_url=None),
        gateway=UnconfiguredGroupGateway(["WHATSHUB_SUPABASE_URL"]),
    )

    code, output = _run(app, "list")

    assert code == EXIT_CONFIGURATION
    assert "Configuration required" in output
    assert "WHATSHUB_SUPABASE_URL" in output
    assert "WHATSHUB_SUPABASE_KEY" in output
