import sys
import os

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

pytest.importorskip("PySide6")

from flowpad.api import NotesApi
from flowpad.core.models import Note
from flowpad.errors import NoteStoreError
from flowpad.store.app_settings import SettingsStore
from flowpad.store.notes import NoteStore
from flowpad.workers.save_note import SaveNoteWorker


@pytest.fixture
def api(tmp_path):
    return NotesApi(
        store=NoteStore(tmp_path / "notes", recovery_dir=tmp_path / "recovery"),
        settings=SettingsStore(tmp_path / "settings.ini"),
    )


def test_worker_emits_finished(api):
    got = []
    worker = SaveNoteWorker(req_id=7, api=api, note=Note(title="Bg", content="<b>x</b>"))
    worker.signals.finished.connect(lambda rid, note: got.append((rid, note)))
    worker.run()

    assert len(got) == 1
    rid, note = got[0]
    assert rid == 7
    assert note.id
    assert api.store.get(note.id).content == "<strong>x</strong>"


def test_worker_emits_failed(api, monkeypatch):
    def boom(note, **kwargs):
        raise NoteStoreError("no space left")

    monkeypatch.setattr(api.store, "save", boom)
    errors = []
    worker = SaveNoteWorker(req_id=1, api=api, note=Note(title="Bg"))
    worker.signals.failed.connect(lambda rid, err: errors.append((rid, err)))
    worker.run()

    assert errors == [(1, "no space left")]


class _InlinePool:
    """Runs workers immediately on the calling thread."""

    def start(self, worker):
        worker.run()


def test_save_service_reports_saves(api):
    from flowpad.services.save_service import SaveService

    saved, failed = [], []
    service = SaveService(
        api=api,
        thread_pool=_InlinePool(),
        on_saved=lambda rid, note: saved.append((rid, note)),
        on_failed=lambda rid, err: failed.append((rid, err)),
    )
    first = api.save_note(Note(title="Auto", content="v1")).value

    r1 = service.save(first.copy(content="v2"))
    r2 = service.save(first.copy(content="v3"))

    assert [rid for rid, _ in saved] == [r1, r2]
    assert failed == []
    assert api.store.get(first.id).content == "v3"
    assert service._latest == {}
    assert service._in_flight == {}


class _HeldPool:
    """Keeps workers until the test runs them, in any order."""

    def __init__(self):
        self.workers = []

    def start(self, worker):
        self.workers.append(worker)


def test_save_service_drops_older_result_finishing_last(api):
    from flowpad.services.save_service import SaveService

    pool = _HeldPool()
    saved = []
    service = SaveService(
        api=api,
        thread_pool=pool,
        on_saved=lambda rid, note: saved.append(rid),
        on_failed=lambda rid, err: None,
    )
    first = api.save_note(Note(title="Auto", content="v1")).value

    r1 = service.save(first.copy(content="v2"))
    r2 = service.save(first.copy(content="v3"))
    assert service.is_current(first.id, r2)
    assert not service.is_current(first.id, r1)

    older, newer = pool.workers
    newer.run()
    older.run()

    assert saved == [r2]
    assert service._latest == {}
    assert service._in_flight == {}
    assert service._note_of == {}


def test_save_service_exported_from_package():
    import flowpad
    from flowpad.services.save_service import SaveService

    assert flowpad.SaveService is SaveService
