from __future__ import annotations


class FlowpadError(Exception):
    """Base class for errors raised by the storage core."""


class NoteStoreError(FlowpadError):
    pass


class NoteParseError(FlowpadError):
    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SettingsError(FlowpadError):
    pass


class ExportError(FlowpadError):
    pass
