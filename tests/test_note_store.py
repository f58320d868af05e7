import sys
import os
import time
from datetime import datetime, timedelta

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from flowpad.core.models import DEFAULT_TITLE, Note
from flowpad.errors import NoteStoreError
from flowpad.store.notes import NoteStore


@pytest.fixture
def store(tmp_path):
    return NoteStore(tmp_path / "notes", recovery_dir=tmp_path / "recovery")


def _files(store):
    return sorted(p.name for p in store.notes_dir.glob("*.md"))


def test_save_assigns_id_and_timestamps(store):
    saved = store.save(Note(title="Plan", content="<strong>Ship it</strong>"))
    assert saved.id
    assert saved.created_at is not None
    assert saved.updated_at >= saved.created_at
    assert saved.created_at.microsecond == 0


def test_save_writes_markup_body(store):
    saved = store.save(Note(title="Plan", content="<strong>Ship it</strong>"))
    (path,) = store.notes_dir.glob("*.md")
    text = path.read_text(encoding="utf-8")
    assert f"id: {saved.id}\n" in text
    assert 'title: "Plan"' in text
    assert text.endswith("**Ship it**")
    assert path.name == f"{saved.created_at:%Y-%m-%d_%H%M%S}_Plan.md"


def test_save_then_load_round_trip(store):
    saved = store.save(Note(title="Plan", content="<strong>Ship it</strong>", tags=["a"]))
    (loaded,) = store.load_all()
    assert loaded.id == saved.id
    assert loaded.title == "Plan"
    assert loaded.content == "<strong>Ship it</strong>"
    assert loaded.tags == ["a"]
    assert loaded.created_at == saved.created_at


def test_tags_with_commas_survive_reload(store):
    saved = store.save(Note(title="Tagged", tags=["a,b", "c"]))
    assert store.get(saved.id).tags == ["a,b", "c"]


def test_save_does_not_mutate_input(store):
    note = Note(title="Draft", content="x")
    store.save(note)
    assert note.id is None
    assert note.updated_at is None


def test_resave_with_new_title_renames_file(store):
    saved = store.save(Note(title="Old", content="x"))
    store.save(saved.copy(title="New"))
    names = _files(store)
    assert len(names) == 1
    assert names[0].endswith("_New.md")
    (loaded,) = store.load_all()
    assert loaded.id == saved.id
    assert loaded.title == "New"


def test_resave_same_title_keeps_single_file(store):
    saved = store.save(Note(title="Same", content="one"))
    store.save(saved.copy(content="two"))
    assert len(_files(store)) == 1
    assert store.get(saved.id).content == "two"


def test_save_found_after_external_rename(store):
    saved = store.save(Note(title="Plan", content="x"))
    (path,) = store.notes_dir.glob("*.md")
    path.rename(store.notes_dir / "renamed by hand.md")
    store2 = NoteStore(store.notes_dir, recovery_dir=store.recovery_dir)
    store2.save(saved.copy(content="y"))
    names = _files(store2)
    assert len(names) == 1
    assert names[0].endswith("_Plan.md")


def test_identical_titles_different_seconds_do_not_collide(store):
    base = datetime(2024, 5, 1, 10, 0, 0)
    a = store.save(Note(title="Same", content="a", created_at=base))
    b = store.save(Note(title="Same", content="b", created_at=base + timedelta(seconds=1)))
    assert len(_files(store)) == 2

    store.delete(a.id)
    names = _files(store)
    assert names == ["2024-05-01_100001_Same.md"]
    assert store.get(b.id).content == "b"


def test_identical_titles_same_second_get_suffix(store):
    base = datetime(2024, 5, 1, 10, 0, 0)
    a = store.save(Note(title="Same", content="a", created_at=base))
    b = store.save(Note(title="Same", content="b", created_at=base))
    assert _files(store) == ["2024-05-01_100000_Same-2.md", "2024-05-01_100000_Same.md"]
    assert store.get(a.id).content == "a"
    assert store.get(b.id).content == "b"


def test_delete_removes_and_is_idempotent(store):
    saved = store.save(Note(title="Gone", content="x"))
    assert store.delete(saved.id) is True
    assert all(n.id != saved.id for n in store.load_all())
    assert store.delete(saved.id) is False
    assert store.delete("never-existed") is False


def test_note_locks_are_not_kept_after_use(store):
    saved = store.save(Note(title="Short lived", content="x"))
    assert saved.id not in store._locks

    with store._lock_for(saved.id) as lock:
        assert store._lock_for(saved.id) is lock
        assert saved.id in store._locks
    del lock

    store.delete(saved.id)
    assert saved.id not in store._locks
    assert len(store._locks) == 0


def test_load_all_sorted_newest_first(store):
    old = store.save(Note(title="Old", content="x"))
    time.sleep(1.1)
    new = store.save(Note(title="New", content="y"))
    ids = [n.id for n in store.load_all()]
    assert ids == [new.id, old.id]


def test_missing_id_header_still_loads(store):
    store.ensure()
    good = store.save(Note(title="Good", content="fine"))
    (store.notes_dir / "hand-written.md").write_text(
        "---\ntitle: \"Hand\"\n---\n\nwritten **by hand**", encoding="utf-8"
    )
    notes = {n.title: n for n in store.load_all()}
    assert set(notes) == {"Good", "Hand"}
    assert notes["Hand"].id
    assert notes["Hand"].id != good.id
    assert notes["Hand"].content == "written <strong>by hand</strong>"


def test_adopted_note_resave_replaces_headerless_file(store):
    store.ensure()
    (store.notes_dir / "loose.md").write_text("no header at all", encoding="utf-8")
    (loose,) = store.load_all()
    assert loose.title == DEFAULT_TITLE
    store.save(loose.copy(title="Loose"))
    names = _files(store)
    assert len(names) == 1
    assert names[0].endswith("_Loose.md")


def test_unparseable_file_skipped(store):
    store.ensure()
    store.save(Note(title="Fine", content="ok"))
    (store.notes_dir / "broken.md").write_text("---\nid: bad\nno end", encoding="utf-8")
    (store.notes_dir / "binary.md").write_bytes(b"\xff\xfe\x00\x81")
    notes = store.load_all()
    assert [n.title for n in notes] == ["Fine"]


def test_duplicate_ids_keep_newest(store):
    store.ensure()
    header = "---\nid: dup\ntitle: \"{t}\"\ncreatedAt: 2024-01-01 00:00:00\nupdatedAt: {u}\ntags: []\n---\n\n"
    (store.notes_dir / "a.md").write_text(header.format(t="A", u="2024-01-01 00:00:00"), encoding="utf-8")
    (store.notes_dir / "b.md").write_text(header.format(t="B", u="2024-02-01 00:00:00"), encoding="utf-8")
    (note,) = store.load_all()
    assert note.title == "B"


def test_save_failure_raises_and_writes_recovery(store, monkeypatch):
    import flowpad.store.notes as notes_mod

    def boom(*args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr(notes_mod, "atomic_write_text", boom)
    with pytest.raises(NoteStoreError):
        store.save(Note(title="Lost", content="<b>keep me</b>"))
    (rec,) = store.recovery_dir.glob("*.md")
    assert "**keep me**" in rec.read_text(encoding="utf-8")


def test_migrate_legacy(store, tmp_path):
    legacy = tmp_path / "config.json"
    legacy.write_text(
        '{"theme": "dark", "notes": ['
        '{"id": "1700000000000", "title": "Legacy", "content": "<b>old</b>",'
        ' "createdAt": "2023-11-14T22:13:20.000Z", "updatedAt": "2023-11-15T08:00:00.000Z", "tags": []},'
        '{"title": 5}'
        ']}',
        encoding="utf-8",
    )
    count = store.migrate_legacy(legacy)
    assert count == 2
    notes = {n.id: n for n in store.load_all()}
    assert notes["1700000000000"].content == "<strong>old</strong>"
    assert notes["1700000000000"].updated_at.year == 2023
    assert '"notes": []' in legacy.read_text(encoding="utf-8")
    assert '"theme": "dark"' in legacy.read_text(encoding="utf-8")


def test_migrate_missing_file(store, tmp_path):
    assert store.migrate_legacy(tmp_path / "nope.json") == 0
