"""Entry point for the session-vault CLI."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .features import SessionRepository
from .log import configure_logging
from .persistence import AliasStore
from .preferences import Preferences, load_preferences

console = Console()
err_console = Console(stderr=True)


def _fail(message: str) -> int:
    err_console.print(f"[red]error:[/red] {escape(message)}")
    return 1


# ---------------------------------------------------------------------------
# sessions
# ---------------------------------------------------------------------------


def _cmd_sessions_list(args: argparse.Namespace, prefs: Preferences) -> int:
    repo = SessionRepository(prefs.sessions_dir, prefs.session_extension)
    limit = args.limit if args.limit is not None else prefs.page_size
    page = repo.list(limit=limit, offset=args.offset, date=args.date, search=args.search)

    if not page.sessions:
        console.print("No sessions found.")
        return 0

    table = Table(title=f"Sessions ({page.total})")
    table.add_column("ID")
    table.add_column("Date")
    table.add_column("Modified")
    table.add_column("Size", justify="right")
    table.add_column("Title")
    for record in page.sessions:
        table.add_row(
            record.short_id,
            record.date,
            record.modified_time.strftime("%Y-%m-%d %H:%M"),
            repo.size_label(record.session_path),
            escape(repo.title(record.session_path)),
        )
    console.print(table)
    if page.has_more:
        console.print(
            f"Showing {page.offset + 1}-{page.offset + len(page.sessions)} "
            f"of {page.total}; use --offset {page.offset + page.limit} for more."
        )
    return 0


def _cmd_sessions_show(args: argparse.Namespace, prefs: Preferences) -> int:
    repo = SessionRepository(prefs.sessions_dir, prefs.session_extension)
    aliases = AliasStore(prefs.aliases_path)
    target = aliases.resolve_session(args.id)
    if target != args.id:
        # Aliases store full paths; the repository matches on filename.
        target = Path(target).name
    record = repo.find_by_id(target, include_content=True)
    if record is None:
        return _fail(f"Session '{args.id}' not found")

    meta = record.metadata
    stats = record.stats
    console.print(f"[bold]{escape(meta.title or 'Untitled Session')}[/bold]")
    console.print(f"  file:     {escape(str(record.session_path))}")
    console.print(f"  date:     {record.date}")
    console.print(f"  size:     {repo.size_label(record.session_path)}")
    console.print(
        f"  items:    {stats.completed_items} done, {stats.in_progress_items} in progress"
    )
    names = [a.name for a in aliases.aliases_for_session(str(record.session_path))]
    if names:
        console.print(f"  aliases:  {', '.join(names)}")
    if args.content and record.content:
        console.print()
        console.print(escape(record.content))
    return 0


# ---------------------------------------------------------------------------
# alias
# ---------------------------------------------------------------------------


def _cmd_alias_set(args: argparse.Namespace, prefs: Preferences) -> int:
    result = AliasStore(prefs.aliases_path).set(args.name, args.session, args.title)
    if not result.success:
        return _fail(result.error or "failed")
    verb = "Created" if result.is_new else "Updated"
    console.print(f"{verb} alias [bold]{result.alias}[/bold] -> {escape(result.session_path or '')}")
    return 0


def _cmd_alias_list(args: argparse.Namespace, prefs: Preferences) -> int:
    entries = AliasStore(prefs.aliases_path).list(search=args.search, limit=args.limit)
    if not entries:
        console.print("No aliases found.")
        return 0
    table = Table(title=f"Aliases ({len(entries)})")
    table.add_column("Alias")
    table.add_column("Session")
    table.add_column("Title")
    table.add_column("Updated")
    for entry in entries:
        table.add_row(
            entry.name,
            escape(entry.session_path),
            escape(entry.title or ""),
            entry.updated_at or entry.created_at,
        )
    console.print(table)
    return 0


def _cmd_alias_rm(args: argparse.Namespace, prefs: Preferences) -> int:
    result = AliasStore(prefs.aliases_path).delete(args.name)
    if not result.success:
        return _fail(result.error or "failed")
    console.print(f"Removed alias [bold]{result.alias}[/bold]")
    return 0


def _cmd_alias_rename(args: argparse.Namespace, prefs: Preferences) -> int:
    result = AliasStore(prefs.aliases_path).rename(args.old, args.new)
    if not result.success:
        return _fail(result.error or "failed")
    console.print(f"Renamed [bold]{result.old_alias}[/bold] -> [bold]{result.alias}[/bold]")
    return 0


def _cmd_alias_title(args: argparse.Namespace, prefs: Preferences) -> int:
    result = AliasStore(prefs.aliases_path).update_title(args.name, args.title)
    if not result.success:
        return _fail(result.error or "failed")
    if result.title:
        console.print(f"Title of [bold]{result.alias}[/bold] set to {escape(result.title)}")
    else:
        console.print(f"Title of [bold]{result.alias}[/bold] cleared")
    return 0


def _cmd_alias_resolve(args: argparse.Namespace, prefs: Preferences) -> int:
    record = AliasStore(prefs.aliases_path).resolve(args.name)
    if record is None:
        return _fail(f"Alias '{args.name}' not found")
    console.print(escape(record.session_path))
    return 0


def _cmd_alias_cleanup(args: argparse.Namespace, prefs: Preferences) -> int:
    repo = SessionRepository(prefs.sessions_dir, prefs.session_extension)
    result = AliasStore(prefs.aliases_path).cleanup_orphans(repo.exists)
    for removed in result.removed_aliases:
        console.print(f"  removed {removed['name']} ({escape(removed['sessionPath'])})")
    if not result.success:
        return _fail(result.error or "failed")
    console.print(f"Checked {result.total_checked} alias(es), removed {result.removed}.")
    return 0


# ---------------------------------------------------------------------------
# argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="session-vault",
        description="Manage dated session files and their aliases",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version="session-vault 0.1.0",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Preferences file (default: <vault home>/preferences.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log diagnostics to stderr",
    )
    groups = parser.add_subparsers(dest="group", required=True)

    # -- sessions --
    sessions = groups.add_parser("sessions", help="List and inspect session files")
    sessions_cmds = sessions.add_subparsers(dest="command", required=True)

    s_list = sessions_cmds.add_parser("list", help="List sessions, newest first")
    s_list.add_argument("--limit", "-n", type=int, default=None)
    s_list.add_argument("--offset", type=int, default=0)
    s_list.add_argument("--date", help="Only sessions from this day (YYYY-MM-DD)")
    s_list.add_argument("--search", help="Only sessions whose short id contains this")
    s_list.set_defaults(handler=_cmd_sessions_list)

    s_show = sessions_cmds.add_parser("show", help="Show one session")
    s_show.add_argument("id", help="Short id, filename, date (legacy) or alias")
    s_show.add_argument("--content", action="store_true", help="Print the file body")
    s_show.set_defaults(handler=_cmd_sessions_show)

    # -- alias --
    alias = groups.add_parser("alias", help="Manage session aliases")
    alias_cmds = alias.add_subparsers(dest="command", required=True)

    a_set = alias_cmds.add_parser("set", help="Create or update an alias")
    a_set.add_argument("name")
    a_set.add_argument("session", help="Session file path")
    a_set.add_argument("--title", default=None)
    a_set.set_defaults(handler=_cmd_alias_set)

    a_list = alias_cmds.add_parser("list", help="List aliases")
    a_list.add_argument("--search", default=None)
    a_list.add_argument("--limit", "-n", type=int, default=None)
    a_list.set_defaults(handler=_cmd_alias_list)

    a_rm = alias_cmds.add_parser("rm", help="Delete an alias")
    a_rm.add_argument("name")
    a_rm.set_defaults(handler=_cmd_alias_rm)

    a_rename = alias_cmds.add_parser("rename", help="Rename an alias")
    a_rename.add_argument("old")
    a_rename.add_argument("new")
    a_rename.set_defaults(handler=_cmd_alias_rename)

    a_title = alias_cmds.add_parser("title", help="Set or clear an alias title")
    a_title.add_argument("name")
    a_title.add_argument("title", nargs="?", default=None)
    a_title.set_defaults(handler=_cmd_alias_title)

    a_resolve = alias_cmds.add_parser("resolve", help="Print the session path of an alias")
    a_resolve.add_argument("name")
    a_resolve.set_defaults(handler=_cmd_alias_resolve)

    a_cleanup = alias_cmds.add_parser(
        "cleanup", help="Remove aliases whose session file no longer exists"
    )
    a_cleanup.set_defaults(handler=_cmd_alias_cleanup)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the session-vault CLI."""
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    prefs = load_preferences(args.config)
    return args.handler(args, prefs)


if __name__ == "__main__":
    sys.exit(main())
