"""
mediascribe.validation - Dependency checks and validation utilities.

Validates the environment and input files before a pipeline run. The
pipeline itself trusts its request; these checks belong to the caller.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from mediascribe.config import MediascribeConfig
from mediascribe.exceptions import DependencyError, LaunchError, ValidationError
from mediascribe.locator import is_executable_file, resolve_normalizer
from mediascribe.process import ProcessInvocation, run_process

FFMPEG_HINT = "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)"
WHISPER_HINT = "Install with: brew install whisper-cpp (macOS) or build from github.com/ggerganov/whisper.cpp"


def validate_input_file(path: Path, label: str = "File") -> dict[str, Any]:
    """Validate that an input file exists and is a regular file.

    Args:
        path: Path to check
        label: Name used in error messages (e.g. "Model", "Input media")

    Returns:
        Dict with validation results

    Raises:
        ValidationError: If file doesn't exist or is not a file
    """
    if not path.exists():
        raise ValidationError(f"{label} not found: {path}")

    if not path.is_file():
        raise ValidationError(f"{label} is not a file: {path}")

    return {
        "path": str(path),
        "exists": True,
        "size_mb": path.stat().st_size // (1024 * 1024),
    }


def check_executable(reference: str, name: str, install_hint: str | None = None) -> str:
    """Resolve an executable reference to a runnable path.

    Absolute or relative paths must be executable files; bare names are
    looked up on PATH.

    Returns:
        Resolved path

    Raises:
        DependencyError: If the executable cannot be found
    """
    if "/" in reference:
        if is_executable_file(reference):
            return reference
        raise DependencyError(name, f"{reference} is missing or not executable", install_hint)

    found = shutil.which(reference)
    if not found:
        raise DependencyError(name, f"{reference} not found in PATH", install_hint)
    return found


def check_normalizer(config: MediascribeConfig) -> dict[str, str]:
    """Check that FFmpeg resolves and report its version.

    Returns:
        Dict with 'path' and 'version'

    Raises:
        DependencyError: If FFmpeg is not found or cannot be launched
    """
    path = check_executable(resolve_normalizer(config), "ffmpeg", FFMPEG_HINT)

    try:
        result = run_process(ProcessInvocation(executable=path, arguments=("-version",)))
    except LaunchError as e:
        raise DependencyError("ffmpeg", str(e), FFMPEG_HINT) from e

    version = "unknown"
    lines = result.stdout.split("\n")
    if lines and lines[0].strip():
        parts = lines[0].split()
        if len(parts) > 2:
            version = parts[2]

    return {"path": path, "version": version}


def check_transcriber(reference: str) -> dict[str, str]:
    """Check that the whisper.cpp binary resolves.

    Raises:
        DependencyError: If the binary is missing or not executable
    """
    return {"path": check_executable(reference, "whisper", WHISPER_HINT)}


def check_scratch_space(scratch: Path, required_mb: int) -> dict[str, Any]:
    """Report free space on the volume that holds the scratch directory.

    The scratch directory is created on the first run, so a missing one is
    measured at its nearest existing ancestor.

    Raises:
        ValidationError: If no ancestor exists or disk usage cannot be read
    """
    probe = scratch
    while not probe.exists():
        if probe.parent == probe:
            raise ValidationError(f"No existing directory above {scratch}")
        probe = probe.parent

    try:
        free = shutil.disk_usage(probe).free
    except OSError as e:
        raise ValidationError(f"Cannot check space for {scratch}: {e}") from e

    available_mb = free // (1024 * 1024)
    return {
        "path": str(scratch),
        "available_mb": available_mb,
        "required_mb": required_mb,
        "sufficient": available_mb >= required_mb,
    }


def run_preflight_checks(
    config: MediascribeConfig,
    transcriber: str,
    required_mb: int = 200,
) -> dict[str, Any]:
    """Run all preflight checks before transcribing.

    Args:
        config: Resolved configuration
        transcriber: Transcriber executable reference to check
        required_mb: Scratch space to require

    Returns:
        Dict with 'passed' and per-check results
    """
    results: dict[str, Any] = {
        "passed": True,
        "checks": {},
    }

    try:
        results["checks"]["ffmpeg"] = check_normalizer(config)
    except DependencyError as e:
        results["checks"]["ffmpeg"] = {"error": str(e), "install_hint": e.install_hint}
        results["passed"] = False

    try:
        results["checks"]["whisper"] = check_transcriber(transcriber)
    except DependencyError as e:
        results["checks"]["whisper"] = {"error": str(e), "install_hint": e.install_hint}
        results["passed"] = False

    scratch = config.resolved_scratch_dir()
    try:
        disk = check_scratch_space(scratch, required_mb)
        results["checks"]["disk_space"] = disk
        if not disk["sufficient"]:
            results["passed"] = False
    except ValidationError as e:
        results["checks"]["disk_space"] = {"error": str(e), "path": str(scratch)}
        results["passed"] = False

    return results
