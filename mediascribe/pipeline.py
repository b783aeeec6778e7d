"""
mediascribe.pipeline - Transcription pipeline orchestrator.

One run is a single linear pass:

    Idle → Normalizing → Transcribing → ReadingResult → Done

with Failed reachable from Normalizing or Transcribing and Cancelled from
any running state. FFmpeg first converts the input media into a 16kHz mono
16-bit PCM WAV work file in the scratch directory, whisper.cpp then writes
a plain-text transcript next to it, and the transcript is read back.

Every failure is folded into a PipelineOutcome; execute() never raises.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from mediascribe.config import MediascribeConfig
from mediascribe.exceptions import (
    LaunchError,
    ProcessFailedError,
    ResultUnreadableError,
    RunCancelledError,
)
from mediascribe.io import read_text
from mediascribe.locator import resolve_normalizer
from mediascribe.logging import logger
from mediascribe.process import (
    CancellationToken,
    ProcessInvocation,
    ProcessResult,
    run_process,
)

# whisper.cpp only accepts this exact input format.
SAMPLE_RATE = 16000
CHANNELS = 1
PCM_CODEC = "pcm_s16le"

Runner = Callable[[ProcessInvocation, CancellationToken | None], ProcessResult]


class PipelineState(str, Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    TRANSCRIBING = "transcribing"
    READING_RESULT = "reading_result"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OutcomeKind(str, Enum):
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"


STAGE_LABELS = {
    PipelineState.NORMALIZING: "normalization",
    PipelineState.TRANSCRIBING: "transcription",
    PipelineState.READING_RESULT: "reading result",
}


class PipelineRequest(BaseModel):
    """Paths supplied by the caller for one pipeline run."""

    model_config = ConfigDict(frozen=True)

    model_path: str
    input_media_path: str
    transcriber_path: str

    @field_validator("model_path", "input_media_path", "transcriber_path", mode="before")
    @classmethod
    def validate_not_empty(cls, v: object) -> object:
        if v is None:
            raise ValueError("must not be empty")
        if isinstance(v, Path):
            v = str(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("must not be empty")
        return v


class PipelineOutcome(BaseModel):
    """Result of a pipeline run: a status line plus the transcript text.

    transcript_text is always empty unless kind is OK.
    """

    model_config = ConfigDict(frozen=True)

    status_message: str
    transcript_text: str = ""
    kind: OutcomeKind = OutcomeKind.OK
    stage: PipelineState | None = None
    output_path: Path | None = None
    work_file: Path | None = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def cancelled(self) -> bool:
        return self.kind is OutcomeKind.CANCELLED

    @classmethod
    def done(
        cls,
        output_path: Path,
        transcript: str,
        work_file: Path | None = None,
        elapsed_seconds: float = 0.0,
    ) -> PipelineOutcome:
        return cls(
            status_message=f"done, output at {output_path}",
            transcript_text=transcript,
            kind=OutcomeKind.OK,
            output_path=output_path,
            work_file=work_file,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def failed(
        cls,
        stage: PipelineState | None,
        message: str,
        work_file: Path | None = None,
        elapsed_seconds: float = 0.0,
    ) -> PipelineOutcome:
        return cls(
            status_message=message,
            kind=OutcomeKind.FAILED,
            stage=stage,
            work_file=work_file,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def cancelled_at(
        cls,
        stage: PipelineState | None,
        work_file: Path | None = None,
        elapsed_seconds: float = 0.0,
    ) -> PipelineOutcome:
        return cls(
            status_message="cancelled",
            kind=OutcomeKind.CANCELLED,
            stage=stage,
            work_file=work_file,
            elapsed_seconds=elapsed_seconds,
        )


def normalizer_invocation(normalizer: str, input_path: str, output_wav: Path) -> ProcessInvocation:
    """Build the FFmpeg call producing 16kHz mono signed 16-bit PCM."""
    return ProcessInvocation(
        executable=normalizer,
        arguments=(
            "-y",
            "-i",
            input_path,
            "-ar",
            str(SAMPLE_RATE),
            "-ac",
            str(CHANNELS),
            "-c:a",
            PCM_CODEC,
            str(output_wav),
        ),
    )


def transcriber_invocation(
    transcriber: str, model_path: str, input_wav: Path
) -> ProcessInvocation:
    """Build the whisper.cpp call writing <work file base>.txt."""
    return ProcessInvocation(
        executable=transcriber,
        arguments=(
            "-m",
            model_path,
            "-f",
            str(input_wav),
            "-otxt",
            "-of",
            str(input_wav.with_suffix("")),
        ),
    )


def transcript_path_for(work_file: Path) -> Path:
    return work_file.with_suffix(".txt")


def load_transcript(path: Path) -> str:
    """Read the transcript written by whisper.cpp.

    Raises:
        ResultUnreadableError: If the file is missing, unreadable or not UTF-8
    """
    try:
        return read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        raise ResultUnreadableError(f"Cannot read transcript {path}: {e}") from e


class TranscriptionPipeline:
    """Runs normalize → transcribe → read-result for one request at a time.

    Each call to execute() is independent; the only state shared between
    runs is the scratch directory, where uuid-based names keep work files
    apart.
    """

    def __init__(
        self,
        config: MediascribeConfig | None = None,
        runner: Runner = run_process,
        on_state: Callable[[PipelineState], None] | None = None,
    ) -> None:
        self.config = config or MediascribeConfig()
        self.runner = runner
        self.on_state = on_state

    def allocate_work_file(self) -> Path:
        """Return a fresh, collision-free WAV path in the scratch directory."""
        scratch = self.config.resolved_scratch_dir()
        return scratch / f"{self.config.temp_prefix}_{uuid.uuid4().hex}.wav"

    def execute(
        self,
        request: PipelineRequest,
        cancel: CancellationToken | None = None,
        on_state: Callable[[PipelineState], None] | None = None,
    ) -> PipelineOutcome:
        """Run the pipeline for request and return its outcome.

        State changes go to the pipeline's on_state and then to the per-run
        on_state. Callback errors are logged and never alter the outcome.

        Args:
            request: Model, input media and transcriber paths
            cancel: Optional token that aborts the run and its child process
            on_state: Optional callback for this run only

        Returns:
            PipelineOutcome; failures carry an empty transcript
        """
        start = time.monotonic()
        state = PipelineState.NORMALIZING
        work_file: Path | None = None
        outcome: PipelineOutcome | None = None
        listeners = [cb for cb in (self.on_state, on_state) if cb is not None]

        try:
            self._transition(state, listeners)
            normalizer = resolve_normalizer(self.config)
            work_file = self.allocate_work_file()
            work_file.parent.mkdir(parents=True, exist_ok=True)
            self._run_stage(
                state,
                normalizer_invocation(normalizer, request.input_media_path, work_file),
                cancel,
            )

            state = PipelineState.TRANSCRIBING
            self._transition(state, listeners)
            self._run_stage(
                state,
                transcriber_invocation(request.transcriber_path, request.model_path, work_file),
                cancel,
            )

            state = PipelineState.READING_RESULT
            self._transition(state, listeners)
            output_path = transcript_path_for(work_file)
            try:
                transcript = load_transcript(output_path)
            except ResultUnreadableError as e:
                logger.warning("%s; reporting empty transcript", e)
                transcript = ""

            outcome = PipelineOutcome.done(
                output_path, transcript, work_file, time.monotonic() - start
            )

        except ProcessFailedError as e:
            logger.debug("%s exited with status %d", e.stage, e.exit_code)
            outcome = PipelineOutcome.failed(state, str(e), work_file, time.monotonic() - start)
            self._transition(PipelineState.FAILED, listeners)
        except LaunchError as e:
            outcome = PipelineOutcome.failed(
                state, f"{STAGE_LABELS[state]} failed: {e}", work_file, time.monotonic() - start
            )
            self._transition(PipelineState.FAILED, listeners)
        except RunCancelledError:
            logger.debug("Run cancelled during %s", state.value)
            outcome = PipelineOutcome.cancelled_at(state, work_file, time.monotonic() - start)
            self._transition(PipelineState.CANCELLED, listeners)
        except Exception as e:
            logger.exception("Unexpected error during %s", state.value)
            outcome = PipelineOutcome.failed(state, f"error: {e}", work_file, time.monotonic() - start)
            self._transition(PipelineState.FAILED, listeners)
        finally:
            if self.config.cleanup_temp_files and work_file is not None:
                self._cleanup(work_file, keep_transcript=outcome is not None and outcome.ok)

        if outcome.ok:
            self._transition(PipelineState.DONE, listeners)
        return outcome

    def _run_stage(
        self,
        state: PipelineState,
        invocation: ProcessInvocation,
        cancel: CancellationToken | None,
    ) -> ProcessResult:
        result = self.runner(invocation, cancel)
        if result.exit_code != 0:
            raise ProcessFailedError(STAGE_LABELS[state], result.exit_code, result.stderr)
        return result

    def _transition(
        self,
        state: PipelineState,
        listeners: list[Callable[[PipelineState], None]],
    ) -> None:
        logger.debug("Pipeline state: %s", state.value)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("State callback failed on %s", state.value)

    def _cleanup(self, work_file: Path, keep_transcript: bool) -> None:
        paths = [work_file]
        if not keep_transcript:
            paths.append(transcript_path_for(work_file))
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove %s: %s", path, e)
