# flowpad/main.py
"""Command-line access to the notes folder.

    python -m flowpad list
    python -m flowpad show <id>
    python -m flowpad export <id> out.html
    python -m flowpad delete <id>
    python -m flowpad migrate legacy.json
    python -m flowpad settings [key=value ...]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from flowpad.api import NotesApi
from flowpad.core.codec import html_to_text
from flowpad.core.frontmatter import format_timestamp
from flowpad.logging_setup import SESSION_ID, install_global_exception_hooks, log
from flowpad.settings import NOTES_DIR, SETTINGS_PATH
from flowpad.store.app_settings import SettingsStore
from flowpad.store.notes import NoteStore


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="flowpad", description="Flowpad notes folder tools")
    p.add_argument("--notes-dir", type=Path, default=NOTES_DIR, help="Path to notes folder")
    p.add_argument("--settings-file", type=Path, default=SETTINGS_PATH, help="Path to settings INI")

    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List notes, newest first")

    show = sub.add_parser("show", help="Print a note as plain text")
    show.add_argument("note_id")

    export = sub.add_parser("export", help="Export a note (.md, .html, anything else = text)")
    export.add_argument("note_id")
    export.add_argument("path", type=Path)
    export.add_argument("--format", choices=["markdown", "html", "text"], default=None)

    delete = sub.add_parser("delete", help="Delete a note")
    delete.add_argument("note_id")

    migrate = sub.add_parser("migrate", help="Import notes from a legacy JSON file")
    migrate.add_argument("path", type=Path)

    settings = sub.add_parser("settings", help="Show or change settings")
    settings.add_argument("assignments", nargs="*", metavar="key=value")

    return p.parse_args(argv)


def build_api(args: argparse.Namespace) -> NotesApi:
    return NotesApi(
        store=NoteStore(args.notes_dir),
        settings=SettingsStore(args.settings_file),
    )


def _find(api: NotesApi, note_id: str):
    result = api.load_notes()
    if not result.ok:
        print(f"error: {result.error}", file=sys.stderr)
        return None
    note = next((n for n in result.value if n.id == note_id), None)
    if note is None:
        print(f"error: no note with id {note_id}", file=sys.stderr)
    return note


def run(args: argparse.Namespace) -> int:
    api = build_api(args)

    if args.command == "list":
        result = api.load_notes()
        if not result.ok:
            print(f"error: {result.error}", file=sys.stderr)
            return 1
        for note in result.value:
            print(f"{note.id}\t{format_timestamp(note.updated_at)}\t{note.display_title}")
        return 0

    if args.command == "show":
        note = _find(api, args.note_id)
        if note is None:
            return 1
        print(note.display_title)
        print()
        print(html_to_text(note.content))
        return 0

    if args.command == "export":
        note = _find(api, args.note_id)
        if note is None:
            return 1
        result = api.export_note(note, args.path, args.format)
        if not result.ok:
            print(f"error: {result.error}", file=sys.stderr)
            return 1
        print(result.value)
        return 0

    if args.command == "delete":
        result = api.delete_note(args.note_id)
        if not result.ok:
            print(f"error: {result.error}", file=sys.stderr)
            return 1
        if not result.value:
            print(f"no note with id {args.note_id}")
        return 0

    if args.command == "migrate":
        result = api.migrate_legacy(args.path)
        if not result.ok:
            print(f"error: {result.error}", file=sys.stderr)
            return 1
        print(f"migrated {result.value} notes")
        return 0

    if args.command == "settings":
        current = api.get_settings()
        if args.assignments:
            for item in args.assignments:
                key, sep, value = item.partition("=")
                if not sep:
                    print(f"error: expected key=value, got {item!r}", file=sys.stderr)
                    return 2
                current[key.strip()] = value.strip()
            result = api.set_settings(current)
            if not result.ok:
                print(f"error: {result.error}", file=sys.stderr)
                return 1
            current = result.value
        for key, value in current.items():
            print(f"{key}={value}")
        return 0

    return 2


def main(argv: list[str] | None = None) -> int:
    install_global_exception_hooks()
    args = parse_args(argv)
    log.debug("CLI command=%s notes_dir=%s SID=%s", args.command, args.notes_dir, SESSION_ID)
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
