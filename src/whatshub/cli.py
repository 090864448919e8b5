"""Browse and manage the WhatsHub group directory from a terminal."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import sys
from typing import Awaitable, Callable, Sequence, TextIO

from whatshub.auth import AuthorizationMismatch, CredentialPrompt
from whatshub.bootstrap import DirectoryApp, build_directory
from whatshub.config import SettingsManager
from whatshub.data import Category, Group
from whatshub.services import AdminLockedError
from whatshub.store import ConfigurationError, StoreError
from whatshub.utils import LoggingOptions, configure_logging, get_logger
from whatshub.utils.errors import describe_exception


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2

_ADMIN_COMMANDS = {"edit", "delete", "verify", "unverify"}


def _category_arg(value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="whatshub", description=__doc__)
    parser.add_argument("--demo", action="store_true", help="use built-in sample groups")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="show groups")
    list_cmd.add_argument("--search", default="", help="text to find in name or description")
    list_cmd.add_argument("--category", default="All", help="category name or 'All'")
    list_cmd.add_argument("--json", action="store_true", help="print JSON rows")

    commands.add_parser("stats", help="count groups per category")

    add_cmd = commands.add_parser("add", help="add a group")
    add_cmd.add_argument("--name", required=True)
    add_cmd.add_argument("--description", required=True)
    add_cmd.add_argument("--link", required=True)
    add_cmd.add_argument("--category", required=True, type=_category_arg)
    add_cmd.add_argument("--members", type=int, default=0)

    edit_cmd = commands.add_parser("edit", help="edit a group (admin)")
    edit_cmd.add_argument("group_id")
    edit_cmd.add_argument("--name")
    edit_cmd.add_argument("--description")
    edit_cmd.add_argument("--link")
    edit_cmd.add_argument("--category", type=_category_arg)
    edit_cmd.add_argument("--members", type=int)

    for name, help_text in (
        ("delete", "delete a group (admin)"),
        ("verify", "mark a group as verified (admin)"),
        ("unverify", "clear the verified mark (admin)"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("group_id")

    return parser


def _format_group(group: Group) -> str:
    badge = " [verified]" if group.is_verified else ""
    return (
        f"{group.id}  {group.name}{badge}\n"
        f"    {group.category.value} | {group.members_count} members | {group.link}\n"
        f"    {group.description}"
    )


def _default_prompt() -> str | None:
    try:
        return getpass.getpass("Admin password: ")
    except (EOFError, KeyboardInterrupt):
        return None


async def _run(
    args: argparse.Namespace,
    app: DirectoryApp,
    out: TextIO,
    prompt: CredentialPrompt,
) -> int:
    logger.debug("Running command", command=args.command, demo=args.demo)
    status = await app.service.start()
    if status.is_configuration_error:
        print(f"Configuration required: {status.reason}", file=out)
        return EXIT_CONFIGURATION
    if status.is_failed:
        descriptor = describe_exception(status.error or RuntimeError(status.reason))
        print(f"{descriptor.headline} {descriptor.detail}", file=out)
        return EXIT_FAILURE

    if args.command in _ADMIN_COMMANDS:
        try:
            unlocked = app.gate.enter(prompt=prompt)
        except AuthorizationMismatch:
            print("Incorrect credential.", file=out)
            return EXIT_FAILURE
        if not unlocked:
            return EXIT_OK

    handler = _HANDLERS[args.command]
    try:
        return await handler(args, app, out)
    except AdminLockedError as exc:
        print(str(exc), file=out)
        return EXIT_FAILURE
    except KeyError as exc:
        print(f"No group with id {exc.args[0]!r}.", file=out)
        return EXIT_FAILURE
    except ConfigurationError as exc:
        print(f"Configuration required: {exc}", file=out)
        return EXIT_CONFIGURATION
    except StoreError as exc:
        descriptor = describe_exception(exc)
        print(f"{descriptor.headline} {descriptor.detail}", file=out)
        return EXIT_FAILURE


async def _cmd_list(args: argparse.Namespace, app: DirectoryApp, out: TextIO) -> int:
    app.view.set_search_text(args.search)
    try:
        app.view.set_category(args.category)
    except ValueError as exc:
        print(str(exc), file=out)
        return EXIT_FAILURE
    groups = app.view.visible()
    if args.json:
        json.dump([group.to_row() for group in groups], out, ensure_ascii=False, indent=2)
        out.write("\n")
        return EXIT_OK
    if not groups:
        print("No groups found.", file=out)
        return EXIT_OK
    for group in groups:
        print(_format_group(group), file=out)
    return EXIT_OK


async def _cmd_stats(args: argparse.Namespace, app: DirectoryApp, out: TextIO) -> int:
    summary = app.view.summary()
    print(f"Total: {summary.total} ({summary.verified} verified)", file=out)
    for category, count in summary.per_category.items():
        print(f"  {category.value}: {count}", file=out)
    return EXIT_OK


async def _cmd_add(args: argparse.Namespace, app: DirectoryApp, out: TextIO) -> int:
    editor = app.editor
    editor.open_create()
    draft = await editor.submit(
        {
            "name": args.name,
            "description": args.description,
            "link": args.link,
            "category": args.category,
            "members_count": args.members,
        }
    )
    if draft is None:
        for field, message in editor.field_errors.items():
            print(f"{field}: {message}", file=out)
        return EXIT_FAILURE
    print(f"Added {draft.name}.", file=out)
    return EXIT_OK


async def _cmd_edit(args: argparse.Namespace, app: DirectoryApp, out: TextIO) -> int:
    editor = app.admin.edit(args.group_id)
    changes = {
        "name": args.name,
        "description": args.description,
        "link": args.link,
        "category": args.category,
        "members_count": args.members,
    }
    draft = await editor.submit({key: value for key, value in changes.items() if value is not None})
    if draft is None:
        for field, message in editor.field_errors.items():
            print(f"{field}: {message}", file=out)
        return EXIT_FAILURE
    print(f"Saved {draft.name}.", file=out)
    return EXIT_OK


async def _cmd_delete(args: argparse.Namespace, app: DirectoryApp, out: TextIO) -> int:
    await app.admin.delete(args.group_id)
    print(f"Deleted {args.group_id}.", file=out)
    return EXIT_OK


async def _cmd_verify(args: argparse.Namespace, app: DirectoryApp, out: TextIO) -> int:
    value = args.command == "verify"
    await app.admin.set_verified(args.group_id, value)
    state = "verified" if value else "unverified"
    print(f"Marked {args.group_id} as {state}.", file=out)
    return EXIT_OK


_HANDLERS: dict[str, Callable[[argparse.Namespace, DirectoryApp, TextIO], Awaitable[int]]] = {
    "list": _cmd_list,
    "stats": _cmd_stats,
    "add": _cmd_add,
    "edit": _cmd_edit,
    "delete": _cmd_delete,
    "verify": _cmd_verify,
    "unverify": _cmd_verify,
}


def main(
    argv: Sequence[str] | None = None,
    *,
    app: DirectoryApp | None = None,
    out: TextIO | None = None,
    prompt: CredentialPrompt | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(LoggingOptions(debug=args.debug, file_sink=app is None))
    directory = app or build_directory(SettingsManager().load(), demo=args.demo)

    async def runner() -> int:
        try:
            return await _run(args, directory, out or sys.stdout, prompt or _default_prompt)
        finally:
            await directory.aclose()

    return asyncio.run(runner())


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
