"""
mediascribe.exceptions - Custom exception classes.

All mediascribe-specific exceptions inherit from MediascribeError.
"""


class MediascribeError(Exception):
    """Base exception for all mediascribe errors."""

    pass


class ConfigError(MediascribeError):
    """Configuration loading or validation error."""

    pass


class ValidationError(MediascribeError):
    """Input validation error."""

    pass


class LaunchError(MediascribeError):
    """External program could not be started."""

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"cannot launch {executable}: {reason}")


class ProcessFailedError(MediascribeError):
    """External program ran but exited with a non-zero status."""

    def __init__(self, stage: str, exit_code: int, stderr: str):
        self.stage = stage
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"{stage} failed: {stderr}")


class ResultUnreadableError(MediascribeError):
    """Transcript file missing or unreadable after a successful run."""

    pass


class RunCancelledError(MediascribeError):
    """Pipeline run was cancelled."""

    pass


class PipelineBusyError(MediascribeError):
    """A pipeline run is already in flight."""

    pass


class DependencyError(MediascribeError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
