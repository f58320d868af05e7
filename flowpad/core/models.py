from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime

DEFAULT_TITLE = "New Note"
DEFAULT_FONT_SIZE = 16
DEFAULT_FONT_FAMILY = "Aeonik"


def generate_note_id() -> str:
    return uuid.uuid4().hex


def now() -> datetime:
    # header timestamps carry whole seconds only
    return datetime.now().replace(microsecond=0)


@dataclass
class Note:
    id: str | None = None
    title: str = ""
    content: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: list[str] = field(default_factory=list)
    font_size: int = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    folder: str | None = None
    folder_name: str | None = None

    @property
    def display_title(self) -> str:
        return self.title.strip() or DEFAULT_TITLE

    def copy(self, **changes) -> "Note":
        changes.setdefault("tags", list(self.tags))
        return replace(self, **changes)


@dataclass
class Folder:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
