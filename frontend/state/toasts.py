"""
Toast Queue

Transient notifications with automatic expiry.

INVARIANTS:
===========
- Insertion ordered, never reordered
- Ids come from a monotonic counter, so two toasts never share an id
- Every toast expires after the configured duration unless removed first
- Manual removal cancels the pending expiry timer
- Removing an unknown or already-removed id is a no-op
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
import itertools
import logging

from ..scheduling import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class ToastSeverity(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Toast:
    id: int
    message: str
    severity: ToastSeverity = ToastSeverity.INFO


class ToastQueue:
    def __init__(
        self,
        scheduler: Scheduler,
        duration_ms: float = 3000,
        on_change: Optional[Callable[[], None]] = None
    ):
        self._scheduler = scheduler
        self._duration = duration_ms / 1000.0
        self._on_change = on_change
        self._ids = itertools.count(1)
        self._toasts: List[Toast] = []
        self._timers: Dict[int, TimerHandle] = {}

    @property
    def items(self) -> Tuple[Toast, ...]:
        return tuple(self._toasts)

    def __len__(self) -> int:
        return len(self._toasts)

    def __contains__(self, toast_id: object) -> bool:
        return any(t.id == toast_id for t in self._toasts)

    def show(self, message: str, severity: ToastSeverity = ToastSeverity.INFO) -> Toast:
        toast = Toast(id=next(self._ids), message=message, severity=ToastSeverity(severity))
        self._toasts.append(toast)
        self._timers[toast.id] = self._scheduler.call_later(
            self._duration, lambda: self._expire(toast.id)
        )
        logger.debug("Toast %d (%s): %s", toast.id, toast.severity.value, message)
        self._changed()
        return toast

    def remove(self, toast_id: int) -> bool:
        timer = self._timers.pop(toast_id, None)
        if timer is not None:
            timer.cancel()
        for index, toast in enumerate(self._toasts):
            if toast.id == toast_id:
                del self._toasts[index]
                self._changed()
                return True
        return False

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        if self._toasts:
            self._toasts.clear()
            self._changed()

    def _expire(self, toast_id: int) -> None:
        self._timers.pop(toast_id, None)
        self.remove(toast_id)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
