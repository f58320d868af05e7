from .codec import html_to_markup, html_to_text, markup_to_html
from .filenames import note_filename, sanitize_title
from .models import Folder, Note

__all__ = ["html_to_markup",
           "html_to_text",
           "markup_to_html",
           "note_filename",
           "sanitize_title",
           "Folder",
           "Note"
           ]
