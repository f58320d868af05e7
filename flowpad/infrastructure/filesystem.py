# flowpad/infrastructure/filesystem.py

from __future__ import annotations

import os
import uuid
from datetime import datetime
from pathlib import Path

from flowpad.core.filenames import sanitize_title
from flowpad.settings import RECOVERY_DIR


# ───────────────────────── public API ─────────────────────────

def atomic_write_text(
    path: Path,
    text: str,
    *,
    encoding: str = "utf-8",
) -> None:
    """
    Atomic-ish file write:
    - write to temp file in same directory
    - fsync
    - replace()

    Prevents half-written notes on crash/power loss.
    """
    path = Path(path)
    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)

    tmp_path = parent / f".{path.name}.tmp-{uuid.uuid4().hex}"

    try:
        with open(tmp_path, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def write_recovery_copy(
    note_path: Path,
    text: str,
    *,
    recovery_dir: Path = RECOVERY_DIR,
) -> Path:
    """
    Emergency copy of a note that could not be saved.

    Writes a timestamped file into ~/.flowpad/recovery/.
    """
    stem = sanitize_title(Path(note_path).stem, max_len=80)
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")

    recovery_path = Path(recovery_dir) / f"{stem}.recovery.{ts}.md"
    atomic_write_text(recovery_path, text, encoding="utf-8")

    return recovery_path


def list_note_files(directory: Path) -> list[Path]:
    """Note files in ``directory``, skipping hidden temp files."""
    return sorted(
        p for p in Path(directory).glob("*.md")
        if p.is_file() and not p.name.startswith(".")
    )
