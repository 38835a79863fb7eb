"""
chatline.playback.scheduler - Timer sources for the coordinator and devices.

Everything runs on one thread. ManualScheduler is a virtual clock driven
by advance(); AsyncioScheduler defers to a running event loop.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, cancel: Callable[[], None] | None = None) -> None:
        self._cancel = cancel
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._cancel is not None:
            self._cancel()


class Scheduler(ABC):
    """Clock plus one-shot and periodic timers, in milliseconds."""

    @abstractmethod
    def now(self) -> float:
        """Current clock reading in milliseconds."""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay_ms."""

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval_ms until the handle is cancelled."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        handle = TimerHandle()
        inner: list[TimerHandle] = []

        def tick() -> None:
            if handle.cancelled:
                return
            callback()
            if not handle.cancelled:
                inner[0] = self.call_later(interval_ms, tick)

        inner.append(self.call_later(interval_ms, tick))
        handle._cancel = lambda: inner[0].cancel()
        return handle


class ManualScheduler(Scheduler):
    """Virtual clock for tests and scripted sessions.

    Time only moves through advance(); due timers fire in deadline order,
    ties in scheduling order.
    """

    def __init__(self, start_ms: float = 0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, TimerHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        deadline = self._now + max(delay_ms, 0)
        heapq.heappush(self._queue, (deadline, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, ms: float) -> None:
        """Move the clock forward by ms, firing every timer that comes due."""
        if ms < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, deadline)
            handle.cancelled = True
            callback()
        self._now = target

    def run_pending(self) -> None:
        """Fire timers already due at the current time."""
        self.advance(0)


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop.

    speed scales the clock: at 2.0, one real second counts as two.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None, speed: float = 1.0) -> None:
        if speed <= 0:
            raise ValueError("speed must be positive")
        self._loop = loop or asyncio.get_running_loop()
        self.speed = speed

    def now(self) -> float:
        return self._loop.time() * 1000 * self.speed

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = self._loop.call_later(max(delay_ms, 0) / 1000 / self.speed, callback)
        return TimerHandle(timer.cancel)
