"""
Injectable Scheduler
====================

Timer source for the store, toasts and the debounce/throttle wrappers.

MODES:
======
1. AsyncioScheduler: real timers on the running event loop
2. ManualScheduler: virtual time, advanced explicitly

GUARANTEES:
- Every scheduled callback returns a handle with ``cancel()``
- Cancelling an already-fired or already-cancelled handle is a no-op
- ManualScheduler runs due callbacks in (due time, scheduling order)
"""

from __future__ import annotations
from typing import Any, Callable, Coroutine, List, Optional, Protocol, Set, Tuple
import asyncio
import heapq
import itertools
import logging

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]": ...


class _TaskKeeper:
    """Holds strong references to background tasks and logs their failures."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background task failed", exc_info=error)

    @property
    def pending(self) -> int:
        return len(self._tasks)


class AsyncioScheduler:
    """
    Scheduler backed by the running asyncio loop.

    The loop is looked up at call time, so one instance can be created
    before the loop starts and used inside it.
    """

    def __init__(self):
        self._keeper = _TaskKeeper()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(max(0.0, delay), callback)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
        return self._keeper.spawn(coro)


class _ManualTimer:
    __slots__ = ("due", "callback", "cancelled", "fired")

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Deterministic virtual-time scheduler.

    Nothing runs until ``advance`` is called. Callbacks scheduled from
    inside a callback run in the same ``advance`` if they fall due.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._order = itertools.count()
        self._queue: List[Tuple[float, int, _ManualTimer]] = []
        self._keeper = _TaskKeeper()

    @property
    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (timer.due, next(self._order), timer))
        return timer

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
        return self._keeper.spawn(coro)

    def advance(self, seconds: float) -> int:
        """Move virtual time forward; returns the number of callbacks run."""
        if seconds < 0:
            raise ValueError("Cannot move time backwards")
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            self._now = due
            if timer.cancelled:
                continue
            timer.fired = True
            timer.callback()
            ran += 1
        self._now = target
        return ran

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def next_due(self) -> Optional[float]:
        live = [due for due, _, t in self._queue if not t.cancelled]
        return min(live) if live else None
