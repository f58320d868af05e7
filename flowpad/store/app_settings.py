# flowpad/store/app_settings.py

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QSettings

from flowpad.core.frontmatter import format_timestamp, parse_timestamp
from flowpad.core.models import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE, Folder, generate_note_id, now
from flowpad.errors import SettingsError
from flowpad.logging_setup import get_logger
from flowpad.settings import SETTINGS_PATH

log = get_logger(__name__)

THEMES = ("light", "dark")

DEFAULT_SETTINGS: dict = {
    "fontSize": DEFAULT_FONT_SIZE,
    "fontFamily": DEFAULT_FONT_FAMILY,
    "theme": "dark",
    "autoSave": True,
    "wordWrap": True,
    "openOnStartup": False,
}


@dataclass(frozen=True)
class SettingsKeys:
    SETTINGS_GROUP: str = "settings"
    FOLDERS: str = "folders/items"


_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def to_bool(value, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
    return default


def to_int(value, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def coerce_settings(raw: dict | None) -> dict:
    """
    Merge ``raw`` over DEFAULT_SETTINGS key by key. Known keys with an
    invalid value keep the default; unknown keys pass through untouched.
    """
    merged = dict(DEFAULT_SETTINGS)
    for key, value in (raw or {}).items():
        if key == "fontSize":
            merged[key] = to_int(value, DEFAULT_SETTINGS[key])
        elif key == "fontFamily":
            merged[key] = str(value).strip() if value else DEFAULT_SETTINGS[key]
        elif key == "theme":
            v = str(value).strip().lower()
            merged[key] = v if v in THEMES else DEFAULT_SETTINGS[key]
        elif key in ("autoSave", "wordWrap", "openOnStartup"):
            merged[key] = to_bool(value, DEFAULT_SETTINGS[key])
        else:
            merged[key] = value
    return merged


class SettingsStore:
    """App preferences and folder records in an INI file via QSettings."""

    def __init__(self, path: Path = SETTINGS_PATH):
        self.path = Path(path)

    def _qsettings(self) -> QSettings:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return QSettings(str(self.path), QSettings.Format.IniFormat)

    @staticmethod
    def _sync(qs: QSettings) -> None:
        qs.sync()
        if qs.status() != QSettings.Status.NoError:
            raise SettingsError(f"Cannot write settings file {qs.fileName()} ({qs.status()})")

    # ───────────────────────── settings ─────────────────────────

    def load(self) -> dict:
        """Persisted settings over defaults. Never raises."""
        try:
            qs = self._qsettings()
            qs.beginGroup(SettingsKeys.SETTINGS_GROUP)
            try:
                raw = {key: qs.value(key) for key in qs.childKeys()}
            finally:
                qs.endGroup()
        except Exception:
            log.exception("Failed to read settings from %s, using defaults", self.path)
            return dict(DEFAULT_SETTINGS)
        return coerce_settings(raw)

    def save(self, settings: dict) -> dict:
        """Overwrite the persisted settings. Returns what was written."""
        values = coerce_settings(settings)
        try:
            qs = self._qsettings()
            qs.remove(SettingsKeys.SETTINGS_GROUP)
            qs.beginGroup(SettingsKeys.SETTINGS_GROUP)
            for key, value in values.items():
                qs.setValue(key, value)
            qs.endGroup()
            self._sync(qs)
        except OSError as exc:
            raise SettingsError(f"Cannot write settings file {self.path}: {exc}") from exc
        log.info("Settings saved: %s", values)
        return values

    # ───────────────────────── folders ─────────────────────────

    def folders(self) -> list[Folder]:
        try:
            qs = self._qsettings()
            raw = qs.value(SettingsKeys.FOLDERS, "[]")
            if isinstance(raw, list):
                # INI values with unquoted commas come back split
                raw = ",".join(raw)
            items = json.loads(raw or "[]")
        except (OSError, ValueError, TypeError) as exc:
            raise SettingsError(f"Cannot read folders from {self.path}: {exc}") from exc

        out: list[Folder] = []
        for item in items:
            try:
                out.append(
                    Folder(
                        id=str(item["id"]),
                        name=str(item.get("name") or ""),
                        created_at=parse_timestamp(item["createdAt"]),
                        updated_at=parse_timestamp(item["updatedAt"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                log.warning("Skipping malformed folder record: %r", item)
        return out

    def save_folder(self, folder_id: str | None, name: str) -> Folder:
        folders = self.folders()
        stamp = now()
        existing = next((f for f in folders if folder_id and f.id == folder_id), None)
        if existing is not None:
            existing.name = name
            existing.updated_at = stamp
            folder = existing
        else:
            folder = Folder(id=folder_id or generate_note_id(), name=name, created_at=stamp, updated_at=stamp)
            folders.append(folder)
        self._write_folders(folders)
        return folder

    def delete_folder(self, folder_id: str) -> bool:
        folders = self.folders()
        kept = [f for f in folders if f.id != folder_id]
        if len(kept) == len(folders):
            return False
        self._write_folders(kept)
        return True

    def _write_folders(self, folders: list[Folder]) -> None:
        payload = [
            {
                "id": f.id,
                "name": f.name,
                "createdAt": format_timestamp(f.created_at),
                "updatedAt": format_timestamp(f.updated_at),
            }
            for f in folders
        ]
        try:
            qs = self._qsettings()
            qs.setValue(SettingsKeys.FOLDERS, json.dumps(payload, ensure_ascii=False))
            self._sync(qs)
        except OSError as exc:
            raise SettingsError(f"Cannot write folders to {self.path}: {exc}") from exc
