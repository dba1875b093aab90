"""Sequential per-batch analysis through the external collaborator."""

import logging
import time
from collections.abc import Callable
from typing import Protocol

from .client import AnalysisClient, AnalysisError
from .config import get_call_delay
from .models import Batch, BatchOutcome, DecodedResult, Message
from .prompts import build_analysis_prompt
from .response import decode_analysis_result, parse_analysis_response

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Receives coarse progress updates from an analysis run."""

    def start(self, total: int) -> None: ...

    def advance(self, completed: int, status: str) -> None: ...

    def finish(self, status: str) -> None: ...


class NullProgress:
    """Progress reporter that discards updates."""

    def start(self, total: int) -> None:
        pass

    def advance(self, completed: int, status: str) -> None:
        pass

    def finish(self, status: str) -> None:
        pass


class LoggingProgress:
    """Progress reporter that writes updates to a logger."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger
        self._total = 0

    def start(self, total: int) -> None:
        self._total = total
        self._log.info(f"Analyzing {total} batch(es)")

    def advance(self, completed: int, status: str) -> None:
        self._log.info(f"[{completed}/{self._total}] {status}")

    def finish(self, status: str) -> None:
        self._log.info(status)


class CallTracker(Protocol):
    """Notified after each collaborator call (see SessionCleanup)."""

    def track_after(self, started_at: float) -> str | None: ...


class BatchAnalyzer:
    """
    Analyze batches one at a time.

    Calls are never issued in parallel and are separated by a fixed delay to
    stay clear of the collaborator's rate limits. A failed call or an
    unparseable reply contributes nothing; the run carries on.
    """

    def __init__(
        self,
        client: AnalysisClient,
        progress: ProgressReporter | None = None,
        tracker: CallTracker | None = None,
        call_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.progress = progress or NullProgress()
        self.tracker = tracker
        self.call_delay = get_call_delay() if call_delay is None else call_delay
        self._sleep = sleep
        self._clock = clock
        self.calls = 0

    def analyze_batch(self, messages: list[Message]) -> DecodedResult:
        """
        Run one analysis turn for a batch of messages.

        Raises:
            AnalysisServiceError: If the collaborator call fails.
            AnalysisFormatError: If the reply holds no usable JSON object.
        """
        prompt = build_analysis_prompt(messages)
        self.calls += 1
        raw = self.client.complete(prompt)
        return decode_analysis_result(parse_analysis_response(raw))

    def _analyze_tracked(self, batch: Batch) -> BatchOutcome:
        outcome = BatchOutcome(
            batch_index=batch.index,
            message_count=len(batch.messages),
            token_count=batch.token_count,
        )
        started_at = self._clock()
        try:
            decoded = self.analyze_batch(batch.messages)
            outcome.result = decoded.result
            outcome.defaulted_fields = decoded.defaulted_fields
        except AnalysisError as e:
            logger.warning(f"Batch {batch.index + 1} produced no result: {e}")
            outcome.error = str(e)
        finally:
            if self.tracker is not None:
                outcome.session_id = self.tracker.track_after(started_at)
        return outcome

    def run(self, batches: list[Batch]) -> list[BatchOutcome]:
        """Analyze every batch in order and collect the outcomes."""
        self.progress.start(len(batches))
        outcomes = []

        for i, batch in enumerate(batches):
            if i > 0 and self.call_delay > 0:
                self._sleep(self.call_delay)
            self.progress.advance(
                i,
                f"Analyzing batch {i + 1}/{len(batches)} "
                f"({len(batch.messages)} messages, ~{batch.token_count} tokens)",
            )
            outcome = self._analyze_tracked(batch)
            outcomes.append(outcome)
            if outcome.result is not None:
                self.progress.advance(
                    i + 1,
                    f"Batch {i + 1} complete: {len(outcome.result.mistakes)} mistakes, "
                    f"{len(outcome.result.successes)} successes",
                )
            else:
                self.progress.advance(i + 1, f"Batch {i + 1} failed")

        succeeded = sum(1 for o in outcomes if o.succeeded)
        self.progress.finish(f"Analyzed {succeeded}/{len(batches)} batches successfully")
        return outcomes
