"""Scheduler interface."""

from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Protocol for the single-threaded timer source driving playback.

    This is the subset of the asyncio event loop API the reader needs, so
    a running loop satisfies it directly. Tests substitute a virtual clock.
    """

    def time(self) -> float:
        """Current time in seconds on a monotonic clock."""
        ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Run ``callback(*args)`` after ``delay`` seconds.

        Returns:
            TimerHandle: Handle whose ``cancel()`` prevents the call.
        """
        ...
