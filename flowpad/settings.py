from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "flowpad"
DATA_DIR = Path.home() / f".{APP_NAME}"
LOG_DIR = DATA_DIR / "logs"
LOG_PATH = LOG_DIR / f"{APP_NAME}.log"
RECOVERY_DIR = DATA_DIR / "recovery"
SETTINGS_PATH = DATA_DIR / f"{APP_NAME}-data.ini"

NOTES_DIR = Path(
    os.environ.get("FLOWPAD_NOTES_DIR") or Path.home() / "Documents" / "Flowpad"
).expanduser()
