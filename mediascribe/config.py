"""
mediascribe.config - YAML config loading and validation.

Handles loading mediascribe.yaml (explicit path or discovered by walking up
from the working directory) and validating all parameters.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from mediascribe.exceptions import ConfigError

CONFIG_FILENAME = "mediascribe.yaml"

DEFAULT_NORMALIZER_CANDIDATES = [
    "/opt/homebrew/bin/ffmpeg",
    "/usr/local/bin/ffmpeg",
]
DEFAULT_NORMALIZER_FALLBACK = "ffmpeg"

DEFAULT_TRANSCRIBER_CANDIDATES = [
    "/opt/homebrew/bin/whisper",
    "/usr/local/bin/whisper",
    "/opt/homebrew/bin/whisper-cpp",
    "/usr/local/bin/whisper-cpp",
]
DEFAULT_TRANSCRIBER_FALLBACK = "/opt/homebrew/bin/whisper"


class MediascribeConfig(BaseModel):
    """Resolved configuration for mediascribe."""

    normalizer_candidates: list[str] = Field(
        default_factory=lambda: list(DEFAULT_NORMALIZER_CANDIDATES)
    )
    normalizer_fallback: str = DEFAULT_NORMALIZER_FALLBACK

    transcriber_candidates: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRANSCRIBER_CANDIDATES)
    )
    transcriber_fallback: str = DEFAULT_TRANSCRIBER_FALLBACK

    model_path: Path | None = None

    scratch_dir: Path | None = None
    temp_prefix: str = "whisper_input"
    cleanup_temp_files: bool = False

    config_path: Path | None = None

    @field_validator("normalizer_fallback", "transcriber_fallback")
    @classmethod
    def validate_fallback(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("fallback executable must not be empty")
        return v

    @field_validator("temp_prefix")
    @classmethod
    def validate_temp_prefix(cls, v: str) -> str:
        if not v:
            raise ValueError("temp_prefix must not be empty")
        if "/" in v or "\\" in v:
            raise ValueError("temp_prefix must not contain path separators")
        return v

    def resolved_scratch_dir(self) -> Path:
        """Scratch directory for work files, defaulting to the system temp dir."""
        if self.scratch_dir is not None:
            return self.scratch_dir
        return Path(tempfile.gettempdir())


def find_config_file(start: Path | None = None) -> Path | None:
    """Find mediascribe.yaml by walking up from start (default: cwd)."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(config_file: Path) -> MediascribeConfig:
    """Load and validate configuration from a YAML file.

    Raises:
        FileNotFoundError: If config_file doesn't exist
        ConfigError: If the file is not valid YAML or holds invalid values
    """
    if not config_file.exists():
        raise FileNotFoundError(f"No config file at {config_file}")

    try:
        with open(config_file) as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    merged = {key: value for key, value in raw_config.items() if value is not None}
    merged["config_path"] = config_file

    try:
        return MediascribeConfig(**merged)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e


def load_config_or_default(config_file: Path | None = None) -> MediascribeConfig:
    """Load an explicit config file, a discovered one, or fall back to defaults."""
    if config_file is not None:
        return load_config(config_file)
    found = find_config_file()
    if found is None:
        return MediascribeConfig()
    return load_config(found)


def create_default_config() -> dict[str, Any]:
    """Create a default config dict for a new mediascribe.yaml."""
    return {
        "normalizer_candidates": list(DEFAULT_NORMALIZER_CANDIDATES),
        "normalizer_fallback": DEFAULT_NORMALIZER_FALLBACK,
        "transcriber_candidates": list(DEFAULT_TRANSCRIBER_CANDIDATES),
        "transcriber_fallback": DEFAULT_TRANSCRIBER_FALLBACK,
        "model_path": None,
        "scratch_dir": None,
        "temp_prefix": "whisper_input",
        "cleanup_temp_files": False,
    }


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
