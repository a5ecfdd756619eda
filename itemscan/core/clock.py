"""
Time source and scheduler.

Everything that needs the current time or a delayed callback takes a Clock,
so tests can use ManualClock and advance virtual time instead of sleeping.
"""

import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class Scheduled(ABC):
    """Handle for a callback registered with Clock.after()."""

    @abstractmethod
    def cancel(self) -> None:
        pass


class Clock(ABC):
    """Abstract time source."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds since the epoch."""
        pass

    @abstractmethod
    def after(self, delay: float, fn: Callable[[], None]) -> Scheduled:
        """Run fn once, delay seconds from now."""
        pass


class _TimerHandle(Scheduled):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class SystemClock(Clock):
    """Wall clock backed by time.time() and daemon timer threads."""

    def now(self) -> float:
        return time.time()

    def after(self, delay: float, fn: Callable[[], None]) -> Scheduled:
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        timer.start()
        return _TimerHandle(timer)


class _ManualHandle(Scheduled):
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock(Clock):
    """
    Clock that only moves when told to.

    Callbacks registered with after() fire during advance(), in due order.
    """

    def __init__(self, start: float = 1_000_000.0):
        self._now = start
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def after(self, delay: float, fn: Callable[[], None]) -> Scheduled:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self._now + delay, next(self._seq), handle, fn))
        return handle

    def advance(self, seconds: float) -> None:
        """Move time forward, firing any callbacks that come due."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, fn = heapq.heappop(self._queue)
            self._now = due
            if not handle.cancelled:
                fn()
        self._now = target

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to fire."""
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)


_default_clock: Optional[Clock] = None


def get_clock() -> Clock:
    """Get or create the default system clock."""
    global _default_clock
    if _default_clock is None:
        _default_clock = SystemClock()
    return _default_clock
