"""
mediascribe.locator - External executable discovery.

Finds the normalizer (FFmpeg) and transcriber (whisper.cpp) binaries by
checking a short, ordered list of install locations. When nothing matches,
a fallback name is returned untouched and left for PATH resolution at
launch time.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from mediascribe.logging import logger

if TYPE_CHECKING:
    from mediascribe.config import MediascribeConfig


def is_executable_file(path: str | Path) -> bool:
    """Return True if path exists, is a regular file and is executable."""
    p = Path(path)
    return p.is_file() and os.access(p, os.X_OK)


def locate(candidates: Iterable[str | Path], fallback: str) -> str:
    """Return the first executable candidate, or fallback verbatim.

    Args:
        candidates: Paths to check, in priority order
        fallback: Value returned when no candidate is executable

    Returns:
        Executable reference (absolute path or bare name)
    """
    for candidate in candidates:
        if is_executable_file(candidate):
            logger.debug("Located executable at %s", candidate)
            return str(candidate)
    logger.debug("No candidate executable found, falling back to %s", fallback)
    return fallback


def resolve_normalizer(config: MediascribeConfig) -> str:
    """Resolve the FFmpeg executable for a pipeline run."""
    return locate(config.normalizer_candidates, config.normalizer_fallback)


def default_transcriber(config: MediascribeConfig) -> str:
    """Resolve the default whisper.cpp executable offered to the user."""
    return locate(config.transcriber_candidates, config.transcriber_fallback)
