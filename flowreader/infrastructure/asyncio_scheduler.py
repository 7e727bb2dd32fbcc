"""Scheduler backed by the running asyncio event loop."""

import asyncio
from typing import Any, Callable, Optional

from ..domain.interfaces.scheduler import Scheduler


class AsyncioScheduler(Scheduler):
    """Delegates timing to an asyncio event loop.

    The loop is looked up lazily so the scheduler can be built before the
    loop starts (e.g. at application import time).
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback, *args)
