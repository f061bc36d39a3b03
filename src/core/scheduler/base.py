"""
Scheduler interface.

Purpose
-------
Every timer in the bot (cache freshness, dashboard refresh ticks, presence
rotation, invite expiry, one-shot guard lifetimes) goes through a `Scheduler`
so tests can substitute virtual time.

Design Notes
------------
- `now()` is wall-clock epoch seconds; it is persisted with invite requests,
  so it must survive restarts.
- Periodic jobs never overlap themselves: the next run is scheduled only
  after the previous callback returned or raised.
- Callback errors are logged and isolated; a failing periodic job keeps its
  schedule.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from logging import Logger
from typing import Awaitable, Callable, Optional, Union

Callback = Callable[[], Union[Awaitable[None], None]]


class ScheduledHandle(ABC):
    """Cancellation handle returned by `call_later` and `run_every`."""

    name: str

    @abstractmethod
    def cancel(self) -> None: ...

    @property
    @abstractmethod
    def cancelled(self) -> bool: ...


class Scheduler(ABC):
    @abstractmethod
    def now(self) -> float:
        """Current time as epoch seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callback, *, name: str = "timer") -> ScheduledHandle:
        """Run `callback` once after `delay` seconds."""

    @abstractmethod
    def run_every(
        self,
        interval: float,
        callback: Callback,
        *,
        name: str,
        initial_delay: Optional[float] = None,
    ) -> ScheduledHandle:
        """Run `callback` repeatedly, waiting `interval` seconds between runs."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Cancel every outstanding timer."""


async def invoke(callback: Callback, name: str, logger: Logger) -> None:
    """Run a sync or async callback, logging (not raising) its failure."""
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        logger.error(
            "Scheduled callback failed",
            extra={
                "job": name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
