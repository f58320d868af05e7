"""
Boundary between the application shell and the storage core.

Every call returns a ``Result``; nothing raises into the UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from flowpad.core.models import Folder, Note
from flowpad.errors import FlowpadError
from flowpad.logging_setup import get_logger
from flowpad.services.export import NoteExporter
from flowpad.store.app_settings import SettingsStore
from flowpad.store.notes import NoteStore

log = get_logger(__name__)

EXPORT_CANCELLED = "Export cancelled"


@dataclass(frozen=True)
class Result:
    ok: bool
    value: Any = None
    error: str | None = None
    cancelled: bool = False

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "Result":
        return cls(ok=False, error=error)


class NotesApi:
    def __init__(
        self,
        *,
        store: NoteStore,
        settings: SettingsStore,
        exporter: NoteExporter | None = None,
    ):
        self.store = store
        self.settings = settings
        self.exporter = exporter or NoteExporter()

    # ───────────────────────── notes ─────────────────────────

    def save_note(self, note: Note) -> Result:
        try:
            return Result.success(self.store.save(note))
        except (FlowpadError, OSError) as exc:
            log.exception("save_note failed id=%s", note.id)
            return Result.failure(str(exc))

    def load_notes(self) -> Result:
        try:
            return Result.success(self.store.load_all())
        except (FlowpadError, OSError) as exc:
            log.exception("load_notes failed")
            return Result.failure(str(exc))

    def delete_note(self, note_id: str) -> Result:
        try:
            return Result.success(self.store.delete(note_id))
        except (FlowpadError, OSError) as exc:
            log.exception("delete_note failed id=%s", note_id)
            return Result.failure(str(exc))

    def export_note(self, note: Note, path: Path | None, fmt: str | None = None) -> Result:
        """``path=None`` means the user dismissed the save dialog."""
        if path is None:
            log.info("Export cancelled for note id=%s", note.id)
            return Result(ok=False, error=EXPORT_CANCELLED, cancelled=True)
        try:
            return Result.success(self.exporter.export(note, Path(path), fmt))
        except (FlowpadError, OSError, ValueError) as exc:
            log.exception("export_note failed id=%s path=%s", note.id, path)
            return Result.failure(str(exc))

    def migrate_legacy(self, json_path: Path) -> Result:
        try:
            return Result.success(self.store.migrate_legacy(Path(json_path)))
        except (FlowpadError, OSError) as exc:
            log.exception("migrate_legacy failed path=%s", json_path)
            return Result.failure(str(exc))

    # ───────────────────────── settings ─────────────────────────

    def get_settings(self) -> dict:
        return self.settings.load()

    def set_settings(self, settings: dict) -> Result:
        try:
            return Result.success(self.settings.save(settings))
        except (FlowpadError, OSError) as exc:
            log.exception("set_settings failed")
            return Result.failure(str(exc))

    # ───────────────────────── folders ─────────────────────────

    def get_folders(self) -> Result:
        try:
            return Result.success(self.settings.folders())
        except (FlowpadError, OSError) as exc:
            log.exception("get_folders failed")
            return Result.failure(str(exc))

    def save_folder(self, name: str, folder_id: str | None = None) -> Result:
        try:
            folder: Folder = self.settings.save_folder(folder_id, name)
        except (FlowpadError, OSError) as exc:
            log.exception("save_folder failed id=%s", folder_id)
            return Result.failure(str(exc))
        return Result.success(folder)

    def delete_folder(self, folder_id: str) -> Result:
        """Remove the folder and move its notes out of it."""
        try:
            self.settings.delete_folder(folder_id)
            moved = 0
            for note in self.store.load_all():
                if note.folder == folder_id:
                    self.store.save(note.copy(folder=None, folder_name=None), touch=False)
                    moved += 1
        except (FlowpadError, OSError) as exc:
            log.exception("delete_folder failed id=%s", folder_id)
            return Result.failure(str(exc))
        log.info("Deleted folder id=%s, detached %d notes", folder_id, moved)
        return Result.success(moved)
