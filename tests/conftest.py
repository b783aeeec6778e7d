"""
Test configuration and shared fixtures.

External tools are replaced by small /bin/sh scripts written into tmp_path,
or by helpers.FakeRunner when no real process is needed.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from helpers import NORMALIZER_OK, write_script

from mediascribe.config import MediascribeConfig


@pytest.fixture
def script_factory(tmp_path: Path) -> Callable[..., Path]:
    """Write an executable shell script under tmp_path/bin."""

    def _make(name: str, body: str, executable: bool = True) -> Path:
        return write_script(tmp_path / "bin" / name, body, executable)

    return _make


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def config(scratch_dir: Path) -> MediascribeConfig:
    """Config whose normalizer never resolves to a real FFmpeg."""
    return MediascribeConfig(
        normalizer_candidates=[],
        normalizer_fallback="ffmpeg-not-installed",
        scratch_dir=scratch_dir,
    )


@pytest.fixture
def stub_config(script_factory, scratch_dir: Path) -> MediascribeConfig:
    """Config pointing at a normalizer stub that succeeds."""
    normalizer = script_factory("ffmpeg", NORMALIZER_OK)
    return MediascribeConfig(
        normalizer_candidates=[str(normalizer)],
        normalizer_fallback="ffmpeg-not-installed",
        scratch_dir=scratch_dir,
    )


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"fake media")
    return path


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    path = tmp_path / "m.bin"
    path.write_bytes(b"fake model")
    return path
