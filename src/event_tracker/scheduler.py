"""Fire-once timers used for time-based flushing."""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Runs callbacks on daemon ``threading.Timer`` threads."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler:
    """Runs callbacks on an asyncio event loop via ``call_later``.

    Without an explicit loop the running loop is used, so ``schedule`` must
    then be called from inside a coroutine or loop callback.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def schedule(
        self, delay: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
