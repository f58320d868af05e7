from __future__ import annotations

import re
from datetime import datetime

from flowpad.core.models import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE, Note

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_FM_RE = re.compile(r"(?s)\A\ufeff?---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)")
_OPEN_RE = re.compile(r"\A\ufeff?---[ \t]*\r?$", re.M)
_UNESCAPE_RE = re.compile(r'\\(["\\])')
_WS_RE = re.compile(r"\s+")
# one list item: a quoted string (commas allowed inside) or a bare word
_TAG_RE = re.compile(r'\s*(?:"(?:[^"\\]|\\.)*"|[^,]+)')


class FrontmatterError(ValueError):
    pass


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """
    Accepts the header format and ISO-8601 (as written by older releases,
    including a trailing ``Z``). Aware values are converted to local time.
    """
    raw = (value or "").strip().strip('"').strip("'")
    if not raw:
        raise ValueError("empty timestamp")
    try:
        return datetime.strptime(raw, TIMESTAMP_FORMAT)
    except ValueError:
        pass
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)


def quote(value: str) -> str:
    value = _WS_RE.sub(" ", value or "").strip()
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return _UNESCAPE_RE.sub(r"\1", value[1:-1])
    return value


def _parse_tags(value: str) -> list[str]:
    inner = value.strip()
    if inner.startswith("[") and inner.endswith("]"):
        inner = inner[1:-1]
    tags = [unquote(part) for part in _TAG_RE.findall(inner)]
    return [t for t in tags if t]


def _parse_nullable(value: str) -> str | None:
    if value.strip() in ("", "null", "~"):
        return None
    return unquote(value)


def build_frontmatter(note: Note) -> str:
    """Header block for a note, including the blank line before the body."""
    tags = ", ".join(quote(t) for t in note.tags)
    folder = quote(note.folder) if note.folder else "null"
    folder_name = quote(note.folder_name) if note.folder_name else "null"
    return (
        "---\n"
        f"id: {note.id}\n"
        f"title: {quote(note.title)}\n"
        f"createdAt: {format_timestamp(note.created_at)}\n"
        f"updatedAt: {format_timestamp(note.updated_at)}\n"
        f"tags: [{tags}]\n"
        f"fontSize: {int(note.font_size or DEFAULT_FONT_SIZE)}\n"
        f"fontFamily: {quote(note.font_family or DEFAULT_FONT_FAMILY)}\n"
        f"folder: {folder}\n"
        f"folderName: {folder_name}\n"
        "---\n\n"
    )


def split_frontmatter(text: str) -> tuple[dict[str, str], str]:
    """
    Returns (raw header fields, body). Text without a header is all body.
    Raises FrontmatterError when a header is opened but never closed.
    """
    m = _FM_RE.match(text)
    if not m:
        if _OPEN_RE.match(text):
            raise FrontmatterError("unterminated frontmatter block")
        return {}, text

    fields: dict[str, str] = {}
    for line in (m.group(1) or "").splitlines():
        key, sep, value = line.partition(":")
        if not sep or not key.strip():
            continue
        fields[key.strip()] = value.strip()

    body = text[m.end():]
    if body.startswith("\r\n"):
        body = body[2:]
    elif body.startswith("\n"):
        body = body[1:]
    return fields, body


def parse_metadata(fields: dict[str, str]) -> dict:
    """
    Typed header values. Missing keys are absent from the result; malformed
    timestamps are dropped so the caller can default them.
    """
    meta: dict = {}
    if fields.get("id"):
        meta["id"] = unquote(fields["id"])
    if "title" in fields:
        meta["title"] = unquote(fields["title"])
    for key, attr in (("createdAt", "created_at"), ("updatedAt", "updated_at")):
        if fields.get(key):
            try:
                meta[attr] = parse_timestamp(fields[key])
            except ValueError:
                pass
    if "tags" in fields:
        meta["tags"] = _parse_tags(fields["tags"])
    if fields.get("fontSize"):
        try:
            meta["font_size"] = int(unquote(fields["fontSize"]))
        except ValueError:
            pass
    if fields.get("fontFamily"):
        meta["font_family"] = unquote(fields["fontFamily"])
    if "folder" in fields:
        meta["folder"] = _parse_nullable(fields["folder"])
    if "folderName" in fields:
        meta["folder_name"] = _parse_nullable(fields["folderName"])
    return meta


def read_note_id(text: str) -> str | None:
    """Header id only; None when the text has no (valid) header or no id."""
    try:
        fields, _ = split_frontmatter(text)
    except FrontmatterError:
        return None
    return unquote(fields.get("id", "")) or None
