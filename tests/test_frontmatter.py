import sys
import os
from datetime import datetime

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from flowpad.core.frontmatter import (
    FrontmatterError,
    build_frontmatter,
    parse_metadata,
    parse_timestamp,
    read_note_id,
    split_frontmatter,
)
from flowpad.core.models import Note


def _note(**kw):
    base = dict(
        id="abc123",
        title='Say "hi"',
        content="",
        created_at=datetime(2024, 1, 2, 3, 4, 5),
        updated_at=datetime(2024, 1, 2, 6, 7, 8),
        tags=["work", "todo"],
    )
    base.update(kw)
    return Note(**base)


def test_build_header_layout():
    text = build_frontmatter(_note())
    assert text.startswith("---\nid: abc123\n")
    assert 'title: "Say \\"hi\\""\n' in text
    assert "createdAt: 2024-01-02 03:04:05\n" in text
    assert "updatedAt: 2024-01-02 06:07:08\n" in text
    assert 'tags: ["work", "todo"]\n' in text
    assert "folder: null\n" in text
    assert text.endswith("---\n\n")


def test_header_parses_back():
    fields, body = split_frontmatter(build_frontmatter(_note()) + "**body**")
    meta = parse_metadata(fields)
    assert body == "**body**"
    assert meta["id"] == "abc123"
    assert meta["title"] == 'Say "hi"'
    assert meta["created_at"] == datetime(2024, 1, 2, 3, 4, 5)
    assert meta["updated_at"] == datetime(2024, 1, 2, 6, 7, 8)
    assert meta["tags"] == ["work", "todo"]
    assert meta["folder"] is None
    assert meta["font_size"] == 16


def test_empty_tags():
    fields, _ = split_frontmatter(build_frontmatter(_note(tags=[])))
    assert parse_metadata(fields)["tags"] == []


def test_tags_with_commas_and_quotes_parse_back():
    tags = ["a,b", "c", 'say "x, y"']
    fields, _ = split_frontmatter(build_frontmatter(_note(tags=tags)))
    assert parse_metadata(fields)["tags"] == tags


def test_bare_tags_are_accepted():
    assert parse_metadata({"tags": "[one, two , ]"})["tags"] == ["one", "two"]


def test_no_header_is_all_body():
    fields, body = split_frontmatter("just text\n")
    assert fields == {}
    assert body == "just text\n"


def test_unterminated_header_raises():
    with pytest.raises(FrontmatterError):
        split_frontmatter("---\nid: x\ntitle: broken\n")


def test_crlf_header():
    fields, body = split_frontmatter("---\r\nid: x1\r\n---\r\n\r\nbody")
    assert fields["id"] == "x1"
    assert body == "body"


def test_unknown_keys_ignored_and_bad_timestamp_dropped():
    fields, _ = split_frontmatter("---\nid: a\ncolor: blue\ncreatedAt: yesterday\n---\n\n")
    meta = parse_metadata(fields)
    assert "created_at" not in meta
    assert meta["id"] == "a"


def test_parse_timestamp_iso_forms():
    assert parse_timestamp("2024-01-02 03:04:05") == datetime(2024, 1, 2, 3, 4, 5)
    assert parse_timestamp("2024-01-02T03:04:05.123") == datetime(2024, 1, 2, 3, 4, 5)
    utc = parse_timestamp("2024-01-02T03:04:05.000Z")
    assert utc.tzinfo is None


def test_read_note_id():
    assert read_note_id("---\nid: 42\n---\n\nx") == "42"
    assert read_note_id("---\ntitle: t\n---\n\nx") is None
    assert read_note_id("no header") is None
    assert read_note_id("---\nid: 1\n") is None
