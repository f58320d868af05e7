from __future__ import annotations

from enum import Enum
from pathlib import Path

from flowpad.core.codec import html_to_markup, html_to_text
from flowpad.core.models import Note, generate_note_id, now
from flowpad.errors import ExportError
from flowpad.infrastructure.filesystem import atomic_write_text
from flowpad.logging_setup import get_logger
from flowpad.services.markdown_renderer import MarkdownRenderer
from flowpad.store.notes import render_note_file

log = get_logger(__name__)


class ExportFormat(str, Enum):
    MARKDOWN = "markdown"
    HTML = "html"
    TEXT = "text"


_SUFFIX_FORMATS = {
    ".md": ExportFormat.MARKDOWN,
    ".markdown": ExportFormat.MARKDOWN,
    ".html": ExportFormat.HTML,
    ".htm": ExportFormat.HTML,
}


def format_for_path(path: Path) -> ExportFormat:
    return _SUFFIX_FORMATS.get(Path(path).suffix.lower(), ExportFormat.TEXT)


class NoteExporter:
    def __init__(self, renderer: MarkdownRenderer | None = None):
        self.renderer = renderer or MarkdownRenderer()

    def render(self, note: Note, fmt: ExportFormat) -> str:
        if fmt is ExportFormat.MARKDOWN:
            # unsaved notes still get a complete header
            stamp = now()
            full = note.copy(
                id=note.id or generate_note_id(),
                created_at=note.created_at or stamp,
                updated_at=note.updated_at or stamp,
            )
            return render_note_file(full)
        if fmt is ExportFormat.HTML:
            return self.renderer.render_page(html_to_markup(note.content), title=note.display_title)
        return html_to_text(note.content)

    def export(self, note: Note, path: Path, fmt: ExportFormat | str | None = None) -> Path:
        path = Path(path)
        fmt = ExportFormat(fmt) if fmt else format_for_path(path)
        text = self.render(note, fmt)
        try:
            atomic_write_text(path, text, encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"Cannot export to {path}: {exc}") from exc
        log.info("Exported note id=%s as %s to %s", note.id, fmt.value, path)
        return path
