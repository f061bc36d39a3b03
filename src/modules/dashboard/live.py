"""
Live Updates

One ad-hoc board, started in any channel with `/live` and refreshed on its
own timer until `/stop`. It runs beside the configured dashboard and does
not touch its settings. Stopping leaves the last message in place.
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

from src.core.config.config import BotConfig
from src.core.scheduler.base import ScheduledHandle, Scheduler
from src.modules.dashboard.publisher import (
    DashboardPublisher,
    PostedDashboardMessage,
    Renderer,
    SelectionProvider,
)
from src.modules.dashboard.transport import DashboardTransport
from src.modules.shared.base_service import BaseService
from src.modules.shared.exceptions import LiveUpdatesAlreadyRunningError, LiveUpdatesNotRunningError
from src.modules.status.aggregator import DashboardAggregator


class LiveUpdateService(BaseService):
    def __init__(
        self,
        config: BotConfig,
        aggregator: DashboardAggregator,
        transport: DashboardTransport,
        renderer: Renderer,
        selection_provider: SelectionProvider,
        scheduler: Scheduler,
        logger: Logger,
    ) -> None:
        super().__init__(config, logger)
        self.aggregator = aggregator
        self.transport = transport
        self.renderer = renderer
        self.selection_provider = selection_provider
        self.scheduler = scheduler
        self.interval = config.live_update_interval

        self._channel_id: Optional[int] = None
        self._publisher: Optional[DashboardPublisher] = None
        self._timer: Optional[ScheduledHandle] = None

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    @property
    def channel_id(self) -> Optional[int]:
        return self._channel_id

    @property
    def publisher(self) -> Optional[DashboardPublisher]:
        return self._publisher

    async def start(self, channel_id: int) -> PostedDashboardMessage:
        """
        Post a live board in `channel_id` and start refreshing it.

        Raises:
            LiveUpdatesAlreadyRunningError: A live board is already active
            TransportError: The first post failed (nothing is started)
        """
        if self.is_running or self._publisher is not None:
            raise LiveUpdatesAlreadyRunningError(self._channel_id or channel_id)

        publisher = DashboardPublisher(
            name="live",
            aggregator=self.aggregator,
            transport=self.transport,
            renderer=self.renderer,
            channel_provider=lambda: self._channel_id,
            selection_provider=self.selection_provider,
            scheduler=self.scheduler,
            logger=self.log,
        )
        self._channel_id = channel_id
        self._publisher = publisher
        try:
            posted = await publisher.post()
        except BaseException:
            self._channel_id = None
            self._publisher = None
            raise

        self._timer = self.scheduler.run_every(
            self.interval,
            publisher.tick,
            name="live-updates",
            initial_delay=self.interval,
        )
        self.log_operation("start_live_updates", channel_id=channel_id, interval=self.interval)
        return posted

    def stop(self) -> Optional[PostedDashboardMessage]:
        """
        Stop refreshing. The message stays where it is.

        Raises:
            LiveUpdatesNotRunningError: Nothing is running
        """
        if not self.is_running:
            raise LiveUpdatesNotRunningError()

        if self._timer is not None:
            self._timer.cancel()
        last = self._publisher.posted if self._publisher else None

        self.log_operation("stop_live_updates", channel_id=self._channel_id)
        self._timer = None
        self._publisher = None
        self._channel_id = None
        return last
