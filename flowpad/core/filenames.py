from __future__ import annotations

import re
import unicodedata
from datetime import datetime

INVALID_CHARS_RE = re.compile(r'[<>:"/\\|?*\u0000-\u001f]')
WHITESPACE_RE = re.compile(r"\s+")

MAX_TITLE_LENGTH = 20
FALLBACK_TITLE = "Untitled Note"
NOTE_SUFFIX = ".md"


def sanitize_title(title: str | None, *, max_len: int = MAX_TITLE_LENGTH) -> str:
    """
    Filesystem-safe, length-capped title fragment.

    Control characters and ``<>:"/\\|?*`` are removed (not replaced), whitespace
    runs collapse to one space. Empty results fall back to FALLBACK_TITLE.
    """
    if title is None:
        return FALLBACK_TITLE

    name = unicodedata.normalize("NFKC", str(title))
    name = "".join(ch for ch in name if unicodedata.category(ch)[0] != "C")
    name = INVALID_CHARS_RE.sub("", name)
    name = WHITESPACE_RE.sub(" ", name).strip()
    name = name[:max_len].rstrip()

    return name or FALLBACK_TITLE


def note_filename(title: str | None, created_at: datetime, *, suffix: int | None = None) -> str:
    stem = f"{created_at:%Y-%m-%d}_{created_at:%H%M%S}_{sanitize_title(title)}"
    if suffix is not None and suffix > 1:
        stem = f"{stem}-{suffix}"
    return stem + NOTE_SUFFIX
