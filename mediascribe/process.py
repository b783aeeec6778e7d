"""
mediascribe.process - Subprocess runner for external tools.

Launches one external program per call, blocks the calling thread until it
exits, and hands back the exit code together with the fully captured
stdout/stderr. Exit codes are never interpreted here.
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading

from pydantic import BaseModel, ConfigDict, Field

from mediascribe.exceptions import LaunchError, RunCancelledError
from mediascribe.logging import logger

TERMINATE_GRACE_SECONDS = 5.0


class ProcessInvocation(BaseModel):
    """An executable plus its argument vector."""

    model_config = ConfigDict(frozen=True)

    executable: str
    arguments: tuple[str, ...] = Field(default_factory=tuple)

    def command(self) -> list[str]:
        return [self.executable, *self.arguments]


class ProcessResult(BaseModel):
    """Exit status and captured output of a finished process."""

    model_config = ConfigDict(frozen=True)

    exit_code: int
    stdout: str = ""
    stderr: str = ""


class CancellationToken:
    """Thread-safe flag used to cancel an in-flight pipeline run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def decode_output(data: bytes | None) -> str:
    """Decode captured process output as UTF-8.

    Undecodable output becomes an empty string instead of failing the call.
    This can hide diagnostics from a misbehaving tool, so it is logged.
    """
    if not data:
        return ""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.debug("Discarding %d bytes of non-UTF-8 process output: %s", len(data), e)
        return ""


def run_process(
    invocation: ProcessInvocation,
    cancel: CancellationToken | None = None,
    poll_interval: float = 0.1,
) -> ProcessResult:
    """Run an external program to completion and capture its output.

    Args:
        invocation: Executable and arguments to launch
        cancel: Optional token; when triggered the child is terminated
        poll_interval: Seconds between cancellation checks

    Returns:
        ProcessResult with the verbatim exit code and decoded streams

    Raises:
        LaunchError: If the executable cannot be started
        RunCancelledError: If cancel was triggered before or during the run
    """
    if cancel is not None and cancel.cancelled:
        raise RunCancelledError(f"{invocation.executable} not started: run cancelled")

    cmd = invocation.command()
    logger.debug("Running: %s", " ".join(cmd))

    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        raise LaunchError(invocation.executable, e.strerror or str(e)) from e

    if cancel is None:
        stdout, stderr = proc.communicate()
    else:
        stdout, stderr = _communicate_until_cancelled(proc, invocation, cancel, poll_interval)

    logger.debug("%s exited with status %d", invocation.executable, proc.returncode)

    return ProcessResult(
        exit_code=proc.returncode,
        stdout=decode_output(stdout),
        stderr=decode_output(stderr),
    )


def _communicate_until_cancelled(
    proc: subprocess.Popen,
    invocation: ProcessInvocation,
    cancel: CancellationToken,
    poll_interval: float,
) -> tuple[bytes, bytes]:
    while True:
        try:
            return proc.communicate(timeout=poll_interval)
        except subprocess.TimeoutExpired:
            if cancel.cancelled:
                logger.debug("Cancelling %s (pid %d)", invocation.executable, proc.pid)
                _terminate(proc)
                raise RunCancelledError(f"{invocation.executable} cancelled") from None


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    try:
        os.killpg(proc.pid, sig)
    except ProcessLookupError:
        pass


def _terminate(proc: subprocess.Popen) -> None:
    """Stop a child and everything it spawned.

    The child leads its own process group, so shells and wrapper scripts
    take their descendants down with them. SIGTERM first, SIGKILL after the
    grace period. Pipes still held open by an escaped descendant are closed
    rather than drained.
    """
    _signal_group(proc, signal.SIGTERM)
    try:
        proc.communicate(timeout=TERMINATE_GRACE_SECONDS)
        return
    except subprocess.TimeoutExpired:
        _signal_group(proc, signal.SIGKILL)

    try:
        proc.communicate(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        proc.wait()
