"""Cancellable, re-armable single-shot timer."""

import logging
from typing import Any, Callable, Optional

from ..interfaces.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class CancellableTimer:
    """Owns at most one pending callback on a scheduler.

    Arming always cancels whatever was pending first, so two overlapping
    waits for the same purpose can never both fire.
    """

    def __init__(self, scheduler: Scheduler, name: str = "timer"):
        self._scheduler = scheduler
        self._name = name
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self, delay_seconds: float, callback: Callable[[], Any]) -> None:
        """Schedule ``callback`` after ``delay_seconds``, replacing any pending one."""
        self.cancel()
        self._generation += 1
        self._handle = self._scheduler.call_later(
            max(0.0, delay_seconds), self._fire, self._generation, callback
        )

    def cancel(self) -> None:
        """Cancel the pending callback, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int, callback: Callable[[], Any]) -> None:
        # A handle cancelled after the scheduler dequeued it must not run.
        if generation != self._generation or self._handle is None:
            logger.debug(f"Dropping stale {self._name} callback (generation {generation})")
            return
        self._handle = None
        callback()
