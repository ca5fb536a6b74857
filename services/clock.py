"""
Schedulable periodic tasks.

The round timers never touch wall-clock APIs directly. Production code uses
AsyncioClock (event-loop timers); tests drive a VirtualClock by hand.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger("arena_bot.services.clock")


class TimerHandle(ABC):
    """Handle to a repeating timer. Cancelling is idempotent."""

    @abstractmethod
    def cancel(self) -> None:
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Clock(ABC):
    """Source of repeating timers."""

    @abstractmethod
    def call_every(self, period: float, callback: Callable[[], None]) -> TimerHandle:
        """Invoke ``callback`` every ``period`` seconds until the handle is cancelled."""
        ...


class _AsyncioRepeatingTimer(TimerHandle):
    def __init__(self, loop: asyncio.AbstractEventLoop, period: float, callback: Callable[[], None]):
        self._loop = loop
        self._period = period
        self._callback = callback
        self._cancelled = False
        self._handle = loop.call_later(period, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Re-arm first so a callback that cancels us also cancels the next tick
        self._handle = self._loop.call_later(self._period, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioClock(Clock):
    """Repeating timers on the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_every(self, period: float, callback: Callable[[], None]) -> TimerHandle:
        if period <= 0:
            raise ValueError("period must be positive")
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioRepeatingTimer(loop, period, callback)


class _VirtualTimer(TimerHandle):
    def __init__(self, seq: int, period: float, next_fire: float, callback: Callable[[], None]):
        self.seq = seq
        self.period = period
        self.next_fire = next_fire
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class VirtualClock(Clock):
    """
    Manually advanced clock.

    ``advance`` fires every due tick in time order; ticks due at the same
    instant fire in timer creation order. Each timer's ticks stay FIFO.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._timers: list[_VirtualTimer] = []
        self._seq = itertools.count()

    def call_every(self, period: float, callback: Callable[[], None]) -> TimerHandle:
        if period <= 0:
            raise ValueError("period must be positive")
        timer = _VirtualTimer(next(self._seq), period, self.now + period, callback)
        self._timers.append(timer)
        return timer

    @property
    def active_timers(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move time forward, firing due ticks.

        Returns:
            Number of ticks delivered
        """
        target = self.now + seconds
        fired = 0
        while True:
            self._timers = [t for t in self._timers if not t.cancelled]
            due = [t for t in self._timers if t.next_fire <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.next_fire, t.seq))
            self.now = timer.next_fire
            timer.next_fire += timer.period
            timer.callback()
            fired += 1
        self.now = target
        return fired
