"""Periodic activity-line refresh driven by the dashboard aggregator."""

from __future__ import annotations

from logging import Logger
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from src.core.exceptions import TransportError
from src.core.scheduler.base import ScheduledHandle, Scheduler
from src.modules.presence.rotator import PresenceRotator
from src.modules.shared.base_service import BaseService
from src.modules.status.aggregator import DashboardAggregator

if TYPE_CHECKING:
    from src.core.config.config import BotConfig

PushPresence = Callable[[str], Awaitable[None]]


class PresenceService(BaseService):
    """
    Each tick aggregates (cache-backed, so cheap), asks the rotator for the
    next frame and pushes it only when the text changed. A failed push is not
    marked, so the same text is retried on the next tick.
    """

    def __init__(
        self,
        config: BotConfig,
        aggregator: DashboardAggregator,
        scheduler: Scheduler,
        logger: Logger,
        rotator: Optional[PresenceRotator] = None,
    ) -> None:
        super().__init__(config, logger)
        self.aggregator = aggregator
        self.scheduler = scheduler
        self.rotator = rotator or PresenceRotator(config.presence_node)
        self.interval = config.presence_refresh_interval
        self._push: Optional[PushPresence] = None
        self._timer: Optional[ScheduledHandle] = None

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self, push: PushPresence) -> None:
        if self._timer is not None:
            return
        self._push = push
        self._timer = self.scheduler.run_every(self.interval, self.tick, name="presence")
        self.log.info("✓ Presence rotation started", extra={"interval": self.interval})

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def tick(self) -> Optional[str]:
        """Returns the pushed text, or None when nothing changed or the push failed."""
        if self._push is None:
            return None

        snapshot = await self.aggregator.aggregate()
        text = self.rotator.next_update(snapshot)
        if text is None:
            return None

        try:
            await self._push(text)
        except TransportError as e:
            self.log.warning(
                "Presence update failed",
                extra={"presence": text, "error": str(e), "error_type": type(e).__name__},
            )
            return None

        self.rotator.mark_pushed(text)
        return text
