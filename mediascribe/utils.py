"""
mediascribe.utils - Formatting for run summaries.
"""

from __future__ import annotations

from pathlib import Path


def format_duration(seconds: float) -> str:
    """Format a run's elapsed time.

    Short runs keep a decimal ("4.2s"); anything from a minute up is shown
    as M:SS or H:MM:SS.
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(path: Path) -> str:
    if not path.exists():
        return "-"
    size = float(path.stat().st_size)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
