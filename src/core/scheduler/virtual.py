"""
Deterministic virtual-time scheduler.

`advance(seconds)` moves the clock forward and runs every timer that falls
due, in due-time order, awaiting each callback before the next one fires.
Used by the test-suite instead of sleeping on real timers.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from src.core.logging.logger import get_logger
from src.core.scheduler.base import Callback, ScheduledHandle, Scheduler, invoke

logger = get_logger(__name__)

DEFAULT_EPOCH = 1_700_000_000.0


@dataclass(eq=False)
class _VirtualTimer(ScheduledHandle):
    name: str
    callback: Callback
    interval: Optional[float] = None
    _cancelled: bool = field(default=False, repr=False)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class VirtualScheduler(Scheduler):
    def __init__(self, start: float = DEFAULT_EPOCH) -> None:
        self._now = start
        self._queue: List[Tuple[float, int, _VirtualTimer]] = []
        self._seq = itertools.count()
        self.fired: List[str] = []

    def now(self) -> float:
        return self._now

    def _push(self, due: float, timer: _VirtualTimer) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), timer))

    def call_later(self, delay: float, callback: Callback, *, name: str = "timer") -> ScheduledHandle:
        timer = _VirtualTimer(name=name, callback=callback)
        self._push(self._now + max(0.0, delay), timer)
        return timer

    def run_every(
        self,
        interval: float,
        callback: Callback,
        *,
        name: str,
        initial_delay: Optional[float] = None,
    ) -> ScheduledHandle:
        timer = _VirtualTimer(name=name, callback=callback, interval=interval)
        self._push(self._now + (initial_delay or 0.0), timer)
        return timer

    @property
    def pending(self) -> List[str]:
        return [t.name for _, _, t in sorted(self._queue) if not t.cancelled]

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = max(self._now, due)
            self.fired.append(timer.name)
            await invoke(timer.callback, timer.name, logger)
            if timer.interval is not None and not timer.cancelled:
                self._push(self._now + timer.interval, timer)
            await asyncio.sleep(0)
        self._now = target
        await asyncio.sleep(0)

    async def shutdown(self) -> None:
        for _, _, timer in self._queue:
            timer.cancel()
        self._queue.clear()
