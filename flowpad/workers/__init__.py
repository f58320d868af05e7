from .save_note import SaveNoteWorker

__all__ = [
    "SaveNoteWorker",
]
