"""
Production scheduler on top of the running asyncio loop.

Every timer is a tracked task; the set keeps strong references until the
task finishes so fire-and-forget timers are not garbage collected.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

from src.core.logging.logger import get_logger
from src.core.scheduler.base import Callback, ScheduledHandle, Scheduler, invoke

logger = get_logger(__name__)


class _TaskHandle(ScheduledHandle):
    def __init__(self, task: "asyncio.Task[Any]", name: str) -> None:
        self._task = task
        self.name = name

    def cancel(self) -> None:
        self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled() or self._task.done()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by `asyncio.sleep` tasks.

    Examples
    --------
    >>> scheduler = AsyncioScheduler()
    >>> handle = scheduler.run_every(10, publisher.tick, name="dashboard-refresh")
    >>> handle.cancel()
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def now(self) -> float:
        return time.time()

    def _spawn(self, coro: Any, name: str) -> _TaskHandle:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return _TaskHandle(task, name)

    def call_later(self, delay: float, callback: Callback, *, name: str = "timer") -> ScheduledHandle:
        async def _delayed() -> None:
            await asyncio.sleep(max(0.0, delay))
            await invoke(callback, name, logger)

        return self._spawn(_delayed(), name)

    def run_every(
        self,
        interval: float,
        callback: Callback,
        *,
        name: str,
        initial_delay: Optional[float] = None,
    ) -> ScheduledHandle:
        async def _loop() -> None:
            logger.info("✓ Periodic job started", extra={"job": name, "interval": interval})
            try:
                if initial_delay:
                    await asyncio.sleep(initial_delay)
                while True:
                    await invoke(callback, name, logger)
                    await asyncio.sleep(interval)
            except asyncio.CancelledError:
                logger.info("Periodic job cancelled", extra={"job": name})
                raise

        return self._spawn(_loop(), name)

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Scheduler stopped", extra={"cancelled_tasks": len(tasks)})
