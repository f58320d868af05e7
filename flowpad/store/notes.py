# flowpad/store/notes.py

from __future__ import annotations

import json
import threading
import weakref
from pathlib import Path

from flowpad.core.codec import html_to_markup, markup_to_html
from flowpad.core.filenames import note_filename
from flowpad.core.frontmatter import (
    FrontmatterError,
    build_frontmatter,
    parse_metadata,
    parse_timestamp,
    read_note_id,
    split_frontmatter,
)
from flowpad.core.models import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_TITLE,
    Note,
    generate_note_id,
    now,
)
from flowpad.errors import NoteParseError, NoteStoreError
from flowpad.infrastructure.filesystem import (
    atomic_write_text,
    list_note_files,
    write_recovery_copy,
)
from flowpad.logging_setup import get_logger
from flowpad.settings import RECOVERY_DIR

log = get_logger(__name__)


def render_note_file(note: Note) -> str:
    """Full file text: header block followed by the markup body."""
    return build_frontmatter(note) + html_to_markup(note.content)


def parse_note_file(text: str, *, source: Path | str = "<text>") -> tuple[Note, bool]:
    """
    Parse file text into a Note with decoded content.

    Missing header fields are defaulted. Returns (note, has_id) where
    ``has_id`` is False when the id was generated here.
    """
    try:
        fields, body = split_frontmatter(text)
    except FrontmatterError as exc:
        raise NoteParseError(source, str(exc)) from exc

    meta = parse_metadata(fields)
    stamp = now()
    has_id = bool(meta.get("id"))

    note = Note(
        id=meta.get("id") or generate_note_id(),
        title=meta.get("title") or DEFAULT_TITLE,
        content=markup_to_html(body.strip()),
        created_at=meta.get("created_at") or stamp,
        updated_at=meta.get("updated_at") or meta.get("created_at") or stamp,
        tags=meta.get("tags", []),
        font_size=meta.get("font_size", DEFAULT_FONT_SIZE),
        font_family=meta.get("font_family", DEFAULT_FONT_FAMILY),
        folder=meta.get("folder"),
        folder_name=meta.get("folder_name"),
    )
    return note, has_id


class _NoteLock:
    """Per-note save/delete lock; weak-referenceable so idle ones are dropped."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc):
        self._lock.release()
        return False


class NoteStore:
    """
    One markdown file per note in ``notes_dir``.

    The ``id`` in each file's header is the key; filenames are only for
    humans browsing the folder. An id -> path index speeds up lookups and is
    always verified against the header before it is trusted.
    """

    def __init__(self, notes_dir: Path, *, recovery_dir: Path = RECOVERY_DIR):
        self.notes_dir = Path(notes_dir)
        self.recovery_dir = Path(recovery_dir)

        self._index: dict[str, Path] = {}
        # ids handed out to files without an id header during load_all
        self._adopted: set[str] = set()

        # an entry lives only while some caller holds its lock
        self._locks: weakref.WeakValueDictionary[str, _NoteLock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    # ───────────────────────── public API ─────────────────────────

    def ensure(self) -> None:
        try:
            self.notes_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise NoteStoreError(f"Cannot create notes directory {self.notes_dir}: {exc}") from exc

    def save(self, note: Note, *, touch: bool = True) -> Note:
        """
        Persist ``note`` and return the saved copy (id and timestamps set).

        touch=False keeps an existing ``updated_at`` (used by migration).
        """
        saved = note.copy()
        stamp = now()
        if not saved.id:
            saved.id = generate_note_id()
        saved.created_at = (saved.created_at or stamp).replace(microsecond=0)
        if touch or saved.updated_at is None:
            saved.updated_at = stamp
        else:
            saved.updated_at = saved.updated_at.replace(microsecond=0)

        with self._lock_for(saved.id):
            self.ensure()
            text = render_note_file(saved)

            try:
                existing = self._find_path(saved.id)
                target = self._target_path(saved, existing)
                atomic_write_text(target, text, encoding="utf-8")
                if existing is not None and existing != target:
                    existing.unlink(missing_ok=True)
            except OSError as exc:
                log.exception("Failed to save note id=%s", saved.id)
                self._write_recovery(saved, text)
                raise NoteStoreError(f"Cannot save note {saved.display_title!r}: {exc}") from exc

            self._index[saved.id] = target
            self._adopted.discard(saved.id)

        log.info("Saved note id=%s file=%s", saved.id, target.name)
        return saved

    def load_all(self) -> list[Note]:
        """All readable notes, newest ``updated_at`` first. Bad files are skipped."""
        self.ensure()
        try:
            files = list_note_files(self.notes_dir)
        except OSError as exc:
            raise NoteStoreError(f"Cannot list {self.notes_dir}: {exc}") from exc

        found: dict[str, tuple[Note, Path]] = {}
        adopted: set[str] = set()

        for path in files:
            try:
                note, has_id = self._load_file(path)
            except NoteParseError as exc:
                log.warning("Skipping unreadable note file: %s", exc)
                continue

            if not has_id:
                adopted.add(note.id)
                log.warning("Note file without id header, assigned id=%s: %s", note.id, path.name)

            prev = found.get(note.id)
            if prev is not None:
                keep, drop = (prev, (note, path))
                if note.updated_at > prev[0].updated_at:
                    keep, drop = drop, keep
                log.warning(
                    "Duplicate note id=%s in %s and %s, ignoring %s",
                    note.id, prev[1].name, path.name, drop[1].name,
                )
                found[note.id] = keep
                continue

            found[note.id] = (note, path)

        self._index = {note_id: path for note_id, (_, path) in found.items()}
        self._adopted = adopted

        notes = [note for note, _ in found.values()]
        notes.sort(key=lambda n: n.updated_at, reverse=True)
        log.info("Loaded %d notes from %s", len(notes), self.notes_dir)
        return notes

    def get(self, note_id: str) -> Note | None:
        path = self._find_path(note_id)
        if path is None:
            return None
        note, _ = self._load_file(path)
        note.id = note_id
        return note

    def delete(self, note_id: str) -> bool:
        """Remove the note's file. Returns False if no file had this id."""
        if not note_id:
            return False

        with self._lock_for(note_id):
            path = self._find_path(note_id)
            if path is None:
                log.info("Delete: no file for note id=%s", note_id)
                return False
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise NoteStoreError(f"Cannot delete {path.name}: {exc}") from exc
            self._index.pop(note_id, None)
            self._adopted.discard(note_id)

        log.info("Deleted note id=%s file=%s", note_id, path.name)
        return True

    def migrate_legacy(self, json_path: Path) -> int:
        """
        Import notes from a legacy JSON blob (a list of notes, or an object
        with a ``notes`` list) and empty that list afterwards.
        """
        json_path = Path(json_path)
        if not json_path.exists():
            return 0
        try:
            raw = json.loads(json_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise NoteStoreError(f"Cannot read legacy notes {json_path}: {exc}") from exc

        items = raw.get("notes", []) if isinstance(raw, dict) else raw
        if not isinstance(items, list):
            raise NoteStoreError(f"Legacy notes in {json_path} are not a list")

        migrated = 0
        for item in items:
            try:
                self.save(_note_from_legacy(item), touch=False)
                migrated += 1
            except (NoteStoreError, TypeError, ValueError, AttributeError):
                log.exception("Failed to migrate legacy note: %r", item)

        if items:
            if isinstance(raw, dict):
                raw["notes"] = []
            else:
                raw = []
            try:
                atomic_write_text(json_path, json.dumps(raw, indent=2), encoding="utf-8")
            except OSError:
                log.exception("Failed to clear legacy notes in %s", json_path)

        log.info("Migrated %d of %d legacy notes from %s", migrated, len(items), json_path)
        return migrated

    # ───────────────────────── internal ─────────────────────────

    def _lock_for(self, note_id: str) -> _NoteLock:
        with self._locks_guard:
            lock = self._locks.get(note_id)
            if lock is None:
                lock = self._locks[note_id] = _NoteLock()
            return lock

    def _load_file(self, path: Path) -> tuple[Note, bool]:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise NoteParseError(path, str(exc)) from exc
        return parse_note_file(text, source=path)

    @staticmethod
    def _header_id(path: Path) -> str | None:
        try:
            return read_note_id(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            return None

    def _matches(self, path: Path, note_id: str) -> bool:
        header_id = self._header_id(path)
        if header_id == note_id:
            return True
        return header_id is None and note_id in self._adopted and path.exists()

    def _find_path(self, note_id: str) -> Path | None:
        cached = self._index.get(note_id)
        if cached is not None and self._matches(cached, note_id):
            return cached
        self._index.pop(note_id, None)

        if not self.notes_dir.is_dir():
            return None
        for path in list_note_files(self.notes_dir):
            if self._header_id(path) == note_id:
                self._index[note_id] = path
                return path
        return None

    def _target_path(self, note: Note, existing: Path | None) -> Path:
        """
        Filename for ``note``. Another note already holding the name (same
        title, same second) pushes this one to a ``-2``, ``-3``... suffix.
        """
        suffix = 1
        while True:
            candidate = self.notes_dir / note_filename(note.title, note.created_at, suffix=suffix)
            if candidate == existing or not candidate.exists():
                return candidate
            if self._header_id(candidate) == note.id:
                return candidate
            suffix += 1

    def _write_recovery(self, note: Note, text: str) -> None:
        try:
            name = note_filename(note.title, note.created_at)
            rec = write_recovery_copy(self.notes_dir / name, text, recovery_dir=self.recovery_dir)
            log.critical("Recovery copy written: %s", rec)
        except OSError:
            log.exception("Failed to write recovery copy")


def _note_from_legacy(item: dict) -> Note:
    def _ts(key):
        value = item.get(key)
        return parse_timestamp(str(value)) if value else None

    return Note(
        id=str(item["id"]) if item.get("id") else None,
        title=str(item.get("title") or DEFAULT_TITLE),
        content=item.get("content") or "",
        created_at=_ts("createdAt"),
        updated_at=_ts("updatedAt"),
        tags=[str(t) for t in item.get("tags") or []],
        font_size=int(item.get("fontSize") or DEFAULT_FONT_SIZE),
        font_family=item.get("fontFamily") or DEFAULT_FONT_FAMILY,
        folder=item.get("folder"),
        folder_name=item.get("folderName"),
    )
