"""
Single-use action guard.

`OneShotRegistry` replaces per-message button collectors: an entity id is
armed with a lifetime, at most one caller can hold the claim at a time, and
once consumed (or expired) the id can never be claimed again.

    registry.arm(requester_id, ttl=86400)
    if registry.claim(requester_id):
        try:
            ... act ...
            registry.consume(requester_id)
        except Exception:
            registry.release(requester_id)
            raise
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Hashable, Set

from src.core.scheduler.base import ScheduledHandle, Scheduler


class _Slot(str, Enum):
    OPEN = "open"
    CLAIMED = "claimed"


class OneShotRegistry:
    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._slots: Dict[Hashable, _Slot] = {}
        self._timers: Dict[Hashable, ScheduledHandle] = {}
        self._lapsed: Set[Hashable] = set()

    def arm(self, key: Hashable, ttl: float) -> None:
        """Open `key` for exactly one successful action within `ttl` seconds."""
        self.disarm(key)
        self._slots[key] = _Slot.OPEN

        async def _lapse() -> None:
            self._timers.pop(key, None)
            if self._slots.get(key) is _Slot.OPEN:
                del self._slots[key]
            elif key in self._slots:
                self._lapsed.add(key)

        self._timers[key] = self._scheduler.call_later(max(ttl, 0.0), _lapse, name=f"one-shot-{key}")

    def claim(self, key: Hashable) -> bool:
        if self._slots.get(key) is not _Slot.OPEN:
            return False
        self._slots[key] = _Slot.CLAIMED
        return True

    def release(self, key: Hashable) -> None:
        """Reopen a claimed key after the action failed (unless it lapsed meanwhile)."""
        if self._slots.get(key) is not _Slot.CLAIMED:
            return
        if key in self._lapsed:
            self.disarm(key)
        else:
            self._slots[key] = _Slot.OPEN

    def consume(self, key: Hashable) -> None:
        self.disarm(key)

    def is_armed(self, key: Hashable) -> bool:
        return key in self._slots

    def is_claimed(self, key: Hashable) -> bool:
        return self._slots.get(key) is _Slot.CLAIMED

    def disarm(self, key: Hashable) -> None:
        self._slots.pop(key, None)
        self._lapsed.discard(key)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def __len__(self) -> int:
        return len(self._slots)
