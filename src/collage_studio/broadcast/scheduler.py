"""
Schedulers
==========

Time source and deferred-call facility for the broadcast channel.

The channel never sleeps. It asks a scheduler for the current time and to
run a callback later, which keeps throttling a scheduled deferral on the
single event-loop timeline.
"""

import asyncio
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    """Cancelable handle returned by call_later."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """
    Protocol for channel schedulers.

    Implemented by:
        - AsyncioScheduler (event loop, production)
        - ManualScheduler in tests (virtual time)
    """

    def now(self) -> float:
        """Monotonic time in seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after delay seconds."""
        ...


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop.

    The loop is resolved lazily so the scheduler can be created before the
    loop starts (e.g. at import time of the service module).
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            return asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(delay, 0.0), callback)
