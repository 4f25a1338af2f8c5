"""CLI entry point for writing and browsing study notes."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from study_notes.core.workspace import WorkspaceError
from study_notes.models import ModelError
from study_notes.runtime import AppContext, build_context
from study_notes.services import ServiceError
from study_notes.settings import ConfigError
from study_notes.store import StoreError

_PREVIEW_CHARS = 60


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-notes notes",
        description="Create, edit, list and delete study notes.",
    )
    parser.add_argument("--config", type=Path, help="Path to a TOML config file.")
    parser.add_argument(
        "--workspace", type=Path, help="Override the workspace root."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log to stderr as well."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Create a note.")
    _add_body_arguments(add, required_title=True)

    edit = sub.add_parser("edit", help="Replace fields of an existing note.")
    edit.add_argument("note_id")
    _add_body_arguments(edit, required_title=False)

    ls = sub.add_parser("list", help="List notes, most recently updated first.")
    ls.add_argument("--subject", help="Only show notes tagged with SUBJECT.")

    show = sub.add_parser("show", help="Print a note.")
    show.add_argument("note_id")

    delete = sub.add_parser("delete", help="Delete a note.")
    delete.add_argument("note_id")
    return parser


def _add_body_arguments(
    parser: argparse.ArgumentParser, *, required_title: bool
) -> None:
    parser.add_argument("--title", required=required_title)
    parser.add_argument("--subject")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--content", help="Note body text.")
    source.add_argument(
        "--file",
        type=Path,
        help="Read the note body from FILE ('-' for stdin).",
    )


def _read_body(args: argparse.Namespace, stdin: TextIO) -> Optional[str]:
    if args.content is not None:
        return args.content
    if args.file is None:
        return None
    if str(args.file) == "-":
        return stdin.read()
    return args.file.read_text(encoding="utf-8", errors="replace")


def _cmd_add(
    args: argparse.Namespace, ctx: AppContext, console: Console, stdin: TextIO
) -> int:
    body = _read_body(args, stdin)
    note = ctx.notes.save_note(args.title, body or "", args.subject or "")
    console.print(f"Saved note [bold]{note.display_title}[/] ({note.id}).")
    return 0


def _cmd_edit(
    args: argparse.Namespace, ctx: AppContext, console: Console, stdin: TextIO
) -> int:
    current = ctx.notes.get_note(args.note_id)
    body = _read_body(args, stdin)
    note = ctx.notes.save_note(
        args.title if args.title is not None else current.title,
        body if body is not None else current.content,
        args.subject if args.subject is not None else current.subject,
        note_id=current.id,
    )
    console.print(f"Updated note [bold]{note.display_title}[/] ({note.id}).")
    return 0


def _cmd_list(args: argparse.Namespace, ctx: AppContext, console: Console) -> int:
    notes = ctx.notes.list_notes(subject=args.subject)
    if not notes:
        console.print("No notes yet.")
        return 1
    table = Table(title="Notes", box=box.SIMPLE)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Subject")
    table.add_column("Preview", overflow="ellipsis")
    for note in notes:
        preview = " ".join(note.content.split())
        if len(preview) > _PREVIEW_CHARS:
            preview = preview[: _PREVIEW_CHARS - 1] + "…"
        table.add_row(note.id, note.display_title, note.subject, preview)
    console.print(table)
    return 0


def _cmd_show(args: argparse.Namespace, ctx: AppContext, console: Console) -> int:
    note = ctx.notes.get_note(args.note_id)
    subtitle = note.subject or None
    console.print(
        Panel(note.content, title=note.display_title, subtitle=subtitle)
    )
    console.print(f"[dim]Updated {note.updated_at}[/]")
    return 0


def _cmd_delete(
    args: argparse.Namespace, ctx: AppContext, console: Console
) -> int:
    ctx.notes.delete_note(args.note_id)
    console.print(f"Deleted note {args.note_id}.")
    return 0


def main(
    argv: Sequence[str] | None = None,
    *,
    context: AppContext | None = None,
    console: Console | None = None,
    stdin: TextIO | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    console = console or Console()
    stdin = stdin or sys.stdin

    try:
        ctx = context or build_context(
            config_path=args.config,
            workspace=args.workspace,
            verbose=args.verbose,
        )
    except (ConfigError, WorkspaceError) as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 2

    ctx.logger.debug("notes CLI invoked", extra={"command": args.command})
    try:
        if args.command == "add":
            return _cmd_add(args, ctx, console, stdin)
        if args.command == "edit":
            return _cmd_edit(args, ctx, console, stdin)
        if args.command == "list":
            return _cmd_list(args, ctx, console)
        if args.command == "show":
            return _cmd_show(args, ctx, console)
        return _cmd_delete(args, ctx, console)
    except (ServiceError, StoreError, ModelError, OSError) as exc:
        ctx.logger.error(
            "notes command failed",
            extra={"command": args.command, "error": str(exc)},
        )
        console.print(f"[red]Error:[/] {exc}")
        return 1


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
