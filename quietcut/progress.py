"""Throttled progress reporting and cooperative cancellation."""

import time
from typing import Callable

from quietcut.models import ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]
CancelCheck = Callable[[], bool]

DEFAULT_EVERY = 100


class Cancelled(Exception):
    """Raised inside a pipeline step when the cancellation check fires."""


class ProgressTracker:
    """Emit ``ProgressEvent``s for one phase, at most once per ``every`` units.

    The final unit always produces a 100% event so consumers see the phase end.
    """

    def __init__(
        self,
        phase: str,
        total: int,
        on_progress: ProgressCallback | None = None,
        is_cancelled: CancelCheck | None = None,
        every: int = DEFAULT_EVERY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.phase = phase
        self.total = max(int(total), 0)
        self.on_progress = on_progress
        self.is_cancelled = is_cancelled
        self.every = max(int(every), 1)
        self.clock = clock
        self._started = clock()
        self._last_emitted = 0

    def check_cancelled(self) -> None:
        if self.is_cancelled is not None and self.is_cancelled():
            raise Cancelled(self.phase)

    def update(self, done: int) -> None:
        """Record that ``done`` units are finished, emitting if enough progressed."""
        self.check_cancelled()
        if self.on_progress is None:
            return
        finished = self.total == 0 or done >= self.total
        if not finished and done - self._last_emitted < self.every:
            return
        self._last_emitted = done
        self.on_progress(self._event(done))

    def _event(self, done: int) -> ProgressEvent:
        if self.total == 0:
            return ProgressEvent(self.phase, 100.0, 0.0)
        done = min(done, self.total)
        elapsed = self.clock() - self._started
        eta = elapsed / done * (self.total - done) if done > 0 else 0.0
        return ProgressEvent(self.phase, done / self.total * 100.0, max(eta, 0.0))
