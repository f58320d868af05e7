# flowpad/workers/save_note.py

from __future__ import annotations

from PySide6.QtCore import QObject, QRunnable, Signal

from flowpad.api import NotesApi
from flowpad.core.models import Note


class SaveNoteSignals(QObject):
    finished = Signal(int, object)   # req_id, saved Note
    failed = Signal(int, str)        # req_id, error


class SaveNoteWorker(QRunnable):
    """
    Background save of one note.

    Concurrent saves of the same note are serialized by the store's per-id
    lock; the worker only moves the file I/O off the UI thread.
    """

    def __init__(self, *, req_id: int, api: NotesApi, note: Note):
        super().__init__()
        self.req_id = req_id
        self.api = api
        self.note = note.copy()
        self.signals = SaveNoteSignals()

    def run(self) -> None:
        result = self.api.save_note(self.note)
        if result.ok:
            self.signals.finished.emit(self.req_id, result.value)
        else:
            self.signals.failed.emit(self.req_id, result.error or "unknown error")
