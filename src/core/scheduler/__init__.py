"""
Timer abstraction for the HomeLab bot.

- **base.py**: `Scheduler` interface and `ScheduledHandle`
- **asyncio_scheduler.py**: production implementation on the running loop
- **virtual.py**: deterministic virtual-time implementation for tests
"""

from src.core.scheduler.asyncio_scheduler import AsyncioScheduler
from src.core.scheduler.base import Callback, ScheduledHandle, Scheduler
from src.core.scheduler.virtual import VirtualScheduler

__all__ = [
    "AsyncioScheduler",
    "Callback",
    "ScheduledHandle",
    "Scheduler",
    "VirtualScheduler",
]
