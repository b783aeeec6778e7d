"""Tests for mediascribe.locator module."""

from __future__ import annotations

from pathlib import Path

from helpers import NORMALIZER_OK, write_script

from mediascribe.config import MediascribeConfig
from mediascribe.locator import (
    default_transcriber,
    is_executable_file,
    locate,
    resolve_normalizer,
)


class TestIsExecutableFile:
    def test_executable_script(self, script_factory) -> None:
        assert is_executable_file(script_factory("tool", NORMALIZER_OK))

    def test_non_executable_file(self, script_factory) -> None:
        assert not is_executable_file(script_factory("tool", NORMALIZER_OK, executable=False))

    def test_missing_file(self, tmp_path: Path) -> None:
        assert not is_executable_file(tmp_path / "missing")

    def test_directory(self, tmp_path: Path) -> None:
        assert not is_executable_file(tmp_path)


class TestLocate:
    def test_returns_first_executable_in_order(self, tmp_path: Path) -> None:
        first = write_script(tmp_path / "a" / "ffmpeg", NORMALIZER_OK)
        second = write_script(tmp_path / "b" / "ffmpeg", NORMALIZER_OK)
        assert locate([str(first), str(second)], "ffmpeg") == str(first)
        assert locate([str(second), str(first)], "ffmpeg") == str(second)

    def test_skips_missing_and_non_executable(self, tmp_path: Path) -> None:
        missing = tmp_path / "missing" / "ffmpeg"
        not_exec = write_script(tmp_path / "a" / "ffmpeg", NORMALIZER_OK, executable=False)
        good = write_script(tmp_path / "b" / "ffmpeg", NORMALIZER_OK)
        later = write_script(tmp_path / "c" / "ffmpeg", NORMALIZER_OK)

        result = locate([str(missing), str(not_exec), str(good), str(later)], "ffmpeg")

        assert result == str(good)

    def test_fallback_returned_verbatim(self, tmp_path: Path) -> None:
        assert locate([str(tmp_path / "nope")], "ffmpeg") == "ffmpeg"
        assert locate([], "/opt/homebrew/bin/whisper") == "/opt/homebrew/bin/whisper"

    def test_accepts_path_objects(self, tmp_path: Path) -> None:
        tool = write_script(tmp_path / "ffmpeg", NORMALIZER_OK)
        assert locate([tool], "ffmpeg") == str(tool)

    def test_not_cached(self, tmp_path: Path) -> None:
        tool = tmp_path / "ffmpeg"
        assert locate([str(tool)], "ffmpeg") == "ffmpeg"
        write_script(tool, NORMALIZER_OK)
        assert locate([str(tool)], "ffmpeg") == str(tool)


class TestConfigResolution:
    def test_resolve_normalizer_uses_config(self, tmp_path: Path) -> None:
        tool = write_script(tmp_path / "ffmpeg", NORMALIZER_OK)
        config = MediascribeConfig(normalizer_candidates=[str(tool)])
        assert resolve_normalizer(config) == str(tool)

    def test_resolve_normalizer_fallback(self, tmp_path: Path) -> None:
        config = MediascribeConfig(normalizer_candidates=[str(tmp_path / "nope")])
        assert resolve_normalizer(config) == "ffmpeg"

    def test_default_transcriber_fallback(self, tmp_path: Path) -> None:
        config = MediascribeConfig(transcriber_candidates=[str(tmp_path / "nope")])
        assert default_transcriber(config) == "/opt/homebrew/bin/whisper"

    def test_default_transcriber_candidate(self, tmp_path: Path) -> None:
        tool = write_script(tmp_path / "whisper-cpp", NORMALIZER_OK)
        config = MediascribeConfig(transcriber_candidates=[str(tmp_path / "nope"), str(tool)])
        assert default_transcriber(config) == str(tool)
