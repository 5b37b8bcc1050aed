"""
Cancellable delayed callbacks for session timers.

Sessions never sleep; they ask a scheduler to run a callback later and keep
the returned handle so the callback can be revoked. Two implementations:

- ManualScheduler: virtual clock advanced explicitly by the host (tests,
  hosts that own their frame loop)
- AsyncioScheduler: thin wrapper over ``loop.call_later``
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class ScheduledTask(Protocol):
    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Single-threaded timer source used by ExerciseSession."""

    def now(self) -> float:
        """Current time in seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        """Run ``callback`` after ``delay`` seconds unless cancelled first."""
        ...


class ManualTask:
    """Handle returned by ManualScheduler.call_later."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self._cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """
    Virtual-clock scheduler.

    Time only moves when ``advance()`` is called; due callbacks run in due
    order, and callbacks scheduled by other callbacks run in the same call if
    they fall inside the advanced window.

    Usage:
        scheduler = ManualScheduler()
        scheduler.call_later(2.0, on_timeout)
        scheduler.advance(2.0)  # on_timeout runs here
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, ManualTask]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTask:
        if delay < 0:
            raise ValueError(f"Delay cannot be negative: {delay}")
        task = ManualTask(self._now + delay, callback)
        heapq.heappush(self._queue, (task.due, next(self._counter), task))
        return task

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every task that falls due.

        Returns:
            Number of callbacks that ran
        """
        if seconds < 0:
            raise ValueError(f"Cannot move time backwards: {seconds}")
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = due
            task.fired = True
            task.callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, limit: float = 3600.0) -> int:
        """Advance until no live task remains (bounded by ``limit`` seconds)."""
        fired = 0
        deadline = self._now + limit
        while True:
            while self._queue and self._queue[0][2].cancelled:
                heapq.heappop(self._queue)
            if not self._queue or self._queue[0][0] > deadline:
                break
            fired += self.advance(self._queue[0][0] - self._now)
        return fired

    @property
    def pending(self) -> int:
        """Number of scheduled, not yet cancelled tasks."""
        return sum(1 for _, _, task in self._queue if not task.cancelled)


class _AsyncioTask:
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop.

    Without an explicit ``loop`` it must be constructed inside a running loop.

    Raises:
        RuntimeError: If no loop is given and none is running
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop if loop is not None else asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _AsyncioTask:
        if delay < 0:
            raise ValueError(f"Delay cannot be negative: {delay}")
        return _AsyncioTask(self.loop.call_later(delay, callback))
