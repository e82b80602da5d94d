"""
Rate-Control Wrappers

``debounce`` delivers only the last call of a burst, after the burst
has been quiet for ``wait_ms``. ``throttle`` fires on the leading edge
and drops every call made during the cooldown.

Both wrappers are fire-and-forget: calling them returns ``None``.
When the wrapped function is a coroutine function its coroutine is
spawned as a background task on the scheduler.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Optional, Tuple
import inspect

from .scheduling import AsyncioScheduler, Scheduler, TimerHandle


def _invoke(fn: Callable[..., Any], scheduler: Scheduler, args, kwargs) -> None:
    result = fn(*args, **kwargs)
    if inspect.iscoroutine(result):
        scheduler.spawn(result)


class Debounced:
    """Callable wrapper returned by ``debounce``."""

    def __init__(self, fn: Callable[..., Any], wait_ms: float, scheduler: Scheduler):
        if wait_ms < 0:
            raise ValueError("wait_ms must be >= 0")
        self._fn = fn
        self._wait = wait_ms / 1000.0
        self._scheduler = scheduler
        self._timer: Optional[TimerHandle] = None
        self._args: Tuple[Any, ...] = ()
        self._kwargs: Dict[str, Any] = {}

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._args, self._kwargs = args, kwargs
        self._timer = self._scheduler.call_later(self._wait, self._fire)

    def _fire(self) -> None:
        self._timer = None
        args, kwargs = self._args, self._kwargs
        self._args, self._kwargs = (), {}
        _invoke(self._fn, self._scheduler, args, kwargs)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._args, self._kwargs = (), {}

    def flush(self) -> None:
        """Deliver the pending call now instead of waiting."""
        if self._timer is not None:
            self._timer.cancel()
            self._fire()


class Throttled:
    """Callable wrapper returned by ``throttle``."""

    def __init__(self, fn: Callable[..., Any], limit_ms: float, scheduler: Scheduler):
        if limit_ms < 0:
            raise ValueError("limit_ms must be >= 0")
        self._fn = fn
        self._limit = limit_ms / 1000.0
        self._scheduler = scheduler
        self._cooldown: Optional[TimerHandle] = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._cooldown is not None:
            return
        _invoke(self._fn, self._scheduler, args, kwargs)
        self._cooldown = self._scheduler.call_later(self._limit, self._reset)

    def _reset(self) -> None:
        self._cooldown = None

    @property
    def cooling_down(self) -> bool:
        return self._cooldown is not None

    def cancel(self) -> None:
        """End the cooldown so the next call fires immediately."""
        if self._cooldown is not None:
            self._cooldown.cancel()
            self._cooldown = None


def debounce(
    fn: Callable[..., Any],
    wait_ms: float,
    scheduler: Optional[Scheduler] = None
) -> Debounced:
    return Debounced(fn, wait_ms, scheduler or AsyncioScheduler())


def throttle(
    fn: Callable[..., Any],
    limit_ms: float,
    scheduler: Optional[Scheduler] = None
) -> Throttled:
    return Throttled(fn, limit_ms, scheduler or AsyncioScheduler())
