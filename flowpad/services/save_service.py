# flowpad/services/save_service.py

from __future__ import annotations

from PySide6.QtCore import QObject, QThreadPool, Slot

from flowpad.api import NotesApi
from flowpad.core.models import Note
from flowpad.logging_setup import get_logger
from flowpad.workers.save_note import SaveNoteWorker

log = get_logger(__name__)


class SaveService(QObject):
    """
    Runs note saves (autosave ticks and manual saves) on a thread pool.

    Responsibilities:
    - number requests
    - start SaveNoteWorker
    - drop results superseded by a newer save of the same note
    """

    def __init__(
        self,
        *,
        api: NotesApi,
        thread_pool: QThreadPool,
        on_saved,
        on_failed,
    ):
        super().__init__()

        self._api = api
        self._pool = thread_pool
        self._on_saved = on_saved
        self._on_failed = on_failed

        self._req_id = 0
        # per note id, only while it has saves in flight
        self._latest: dict[str, int] = {}
        self._in_flight: dict[str, int] = {}
        self._note_of: dict[int, str] = {}

    # ───────────────────────── public API ─────────────────────────

    def save(self, note: Note) -> int:
        self._req_id += 1
        req_id = self._req_id
        if note.id:
            self._latest[note.id] = req_id
            self._in_flight[note.id] = self._in_flight.get(note.id, 0) + 1
            self._note_of[req_id] = note.id

        worker = SaveNoteWorker(req_id=req_id, api=self._api, note=note)
        worker.signals.finished.connect(self._handle_finished)
        worker.signals.failed.connect(self._handle_failed)

        self._pool.start(worker)
        return req_id

    def is_current(self, note_id: str | None, req_id: int) -> bool:
        return not note_id or self._latest.get(note_id, req_id) == req_id

    # ───────────────────────── internal ─────────────────────────

    @Slot(int, object)
    def _handle_finished(self, req_id: int, note: Note) -> None:
        current = self.is_current(self._note_of.get(req_id), req_id)
        self._settle(req_id)
        if not current:
            log.debug("Dropping stale save result req_id=%s id=%s", req_id, note.id)
            return
        self._on_saved(req_id, note)

    @Slot(int, str)
    def _handle_failed(self, req_id: int, err: str) -> None:
        self._settle(req_id)
        # failures are always reported; the edit is still in memory
        self._on_failed(req_id, err)

    def _settle(self, req_id: int) -> None:
        note_id = self._note_of.pop(req_id, None)
        if note_id is None:
            return
        left = self._in_flight.get(note_id, 1) - 1
        if left > 0:
            self._in_flight[note_id] = left
        else:
            self._in_flight.pop(note_id, None)
            self._latest.pop(note_id, None)
