"""Deterministic virtual-clock scheduler for tests and offline simulation."""

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable

from ..domain.interfaces.scheduler import Scheduler

# Times are rounded so repeated float additions land on exact step boundaries.
_TIME_PRECISION = 6


@dataclass
class ManualTimerHandle:
    """Handle for a callback queued on a ManualScheduler."""

    when: float
    seq: int
    callback: Callable[..., Any]
    args: tuple = field(default_factory=tuple)
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """A scheduler whose clock only moves when ``advance()`` is called.

    Callbacks run in due-time order (ties in scheduling order), and a
    callback scheduled while advancing runs in the same ``advance()`` call
    if it falls due before the target time.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[ManualTimerHandle] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimerHandle:
        handle = ManualTimerHandle(
            when=round(self._now + max(0.0, delay), _TIME_PRECISION),
            seq=next(self._seq),
            callback=callback,
            args=args,
        )
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualTimerHandle]:
        """Handles still waiting to run, in due order."""
        return sorted(
            (h for h in self._queue if not h.cancelled),
            key=lambda h: (h.when, h.seq),
        )

    def next_due(self) -> float:
        """Seconds until the next pending callback, or 0 if none."""
        pending = self.pending
        return max(0.0, pending[0].when - self._now) if pending else 0.0

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due.

        Returns:
            int: Number of callbacks run.
        """
        target = round(self._now + seconds, _TIME_PRECISION)
        ran = 0
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = due[0]
            self._queue.remove(handle)
            self._now = max(self._now, handle.when)
            handle.callback(*handle.args)
            ran += 1
        self._queue = [h for h in self._queue if not h.cancelled]
        self._now = target
        return ran

    def run_until_idle(self, limit: int = 100000) -> int:
        """Run callbacks until none are pending.

        Raises:
            RuntimeError: If more than ``limit`` callbacks run.
        """
        ran = 0
        while self.pending:
            if ran >= limit:
                raise RuntimeError(f"Scheduler still busy after {limit} callbacks")
            ran += self.advance(self.next_due())
        return ran
