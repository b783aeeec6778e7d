"""
mediascribe.io - Transcript file access.
"""

from __future__ import annotations

import tempfile
from pathlib import Path


def read_text(path: Path) -> str:
    """Read a transcript written by whisper.cpp.

    Raises:
        OSError: If the file is missing or unreadable
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    with open(path, encoding="utf-8") as f:
        return f.read()


def write_text(path: Path, content: str) -> None:
    """Save a transcript for --output without leaving a half-written file.

    The text lands in a sibling .tmp file first and is renamed over path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(content)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
    tmp_path.replace(path)
