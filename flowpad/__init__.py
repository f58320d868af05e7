from .api import NotesApi, Result
from .core.codec import html_to_markup, markup_to_html
from .core.models import Folder, Note
from .services.save_service import SaveService
from .store.app_settings import SettingsStore
from .store.notes import NoteStore

__all__ = ["NotesApi",
           "Result",
           "html_to_markup",
           "markup_to_html",
           "Folder",
           "Note",
           "SaveService",
           "SettingsStore",
           "NoteStore"
           ]
