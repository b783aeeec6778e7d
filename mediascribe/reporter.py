"""
mediascribe.reporter - Hand-off of pipeline results to the caller.

The pipeline runs on a background thread; the caller (a CLI loop, or any
event loop with a periodic hook) owns presentation. ResultReporter is the
channel between them: the worker enqueues progress and the final outcome
without ever blocking, and the caller pumps the queue from its own thread.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable

from mediascribe.exceptions import PipelineBusyError
from mediascribe.logging import logger
from mediascribe.pipeline import (
    PipelineOutcome,
    PipelineRequest,
    PipelineState,
    TranscriptionPipeline,
)
from mediascribe.process import CancellationToken


class ResultReporter:
    """Queue-backed channel carrying progress and outcomes to the caller."""

    def __init__(
        self,
        on_outcome: Callable[[PipelineOutcome], None] | None = None,
        on_progress: Callable[[PipelineState], None] | None = None,
    ) -> None:
        self.on_outcome = on_outcome
        self.on_progress = on_progress
        self._events: queue.Queue[PipelineState | PipelineOutcome] = queue.Queue()

    def progress(self, state: PipelineState) -> None:
        self._events.put_nowait(state)

    def report(self, outcome: PipelineOutcome) -> None:
        self._events.put_nowait(outcome)

    def pump(self, timeout: float | None = None) -> PipelineOutcome | None:
        """Dispatch queued events on the calling thread.

        Waits up to timeout for the first event, then drains whatever else
        is already queued. Stops at the first outcome.

        Returns:
            The outcome if one was dispatched, else None
        """
        try:
            event = self._events.get(timeout=timeout)
        except queue.Empty:
            return None

        while True:
            if isinstance(event, PipelineOutcome):
                if self.on_outcome is not None:
                    self.on_outcome(event)
                return event
            if self.on_progress is not None:
                self.on_progress(event)
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return None

    def wait(self) -> PipelineOutcome:
        """Pump until an outcome arrives."""
        while True:
            outcome = self.pump(timeout=None)
            if outcome is not None:
                return outcome


class PipelineWorker:
    """Runs one pipeline at a time on a daemon thread.

    Results reach the caller only through the reporter. A second submit()
    while a run is in flight is rejected rather than queued.
    """

    def __init__(self, pipeline: TranscriptionPipeline, reporter: ResultReporter) -> None:
        self.pipeline = pipeline
        self.reporter = reporter
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._cancel: CancellationToken | None = None
        self._outcome: PipelineOutcome | None = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    @property
    def last_outcome(self) -> PipelineOutcome | None:
        """Outcome of the most recent run, set just before it is reported."""
        with self._lock:
            return self._outcome

    def submit(self, request: PipelineRequest) -> CancellationToken:
        """Start a run for request in the background.

        Returns:
            The run's cancellation token

        Raises:
            PipelineBusyError: If a run is already in flight
        """
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                raise PipelineBusyError("a transcription is already running")
            cancel = CancellationToken()
            self._cancel = cancel
            self._outcome = None
            self._thread = threading.Thread(
                target=self._run,
                args=(request, cancel),
                name="mediascribe-pipeline",
                daemon=True,
            )
            self._thread.start()
        return cancel

    def cancel(self) -> None:
        with self._lock:
            if self._cancel is not None:
                self._cancel.cancel()

    def join(self, timeout: float | None = None) -> None:
        with self._lock:
            thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def wait(
        self,
        poll_interval: float = 0.1,
        on_interrupt: Callable[[], None] | None = None,
    ) -> PipelineOutcome:
        """Pump the reporter until the current run's outcome arrives.

        KeyboardInterrupt cancels the run instead of escaping. If the
        interrupt lands after the outcome left the queue, the outcome is
        recovered from last_outcome once the worker thread has finished.
        """
        interrupted = False
        while True:
            try:
                outcome = self.reporter.pump(timeout=poll_interval)
            except KeyboardInterrupt:
                interrupted = True
                if on_interrupt is not None:
                    on_interrupt()
                self.cancel()
                continue
            if outcome is not None:
                return outcome
            if interrupted and not self.running and self.last_outcome is not None:
                return self.last_outcome

    def _run(self, request: PipelineRequest, cancel: CancellationToken) -> None:
        try:
            outcome = self.pipeline.execute(request, cancel, on_state=self.reporter.progress)
        except Exception as e:
            logger.exception("Pipeline run raised")
            outcome = PipelineOutcome.failed(None, f"error: {e}")
        with self._lock:
            self._outcome = outcome
        logger.debug("Reporting outcome: %s", outcome.status_message)
        self.reporter.report(outcome)
