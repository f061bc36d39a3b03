"""
Dashboard Publisher

Purpose
-------
Keep exactly one live status message per publisher: post it once, then edit
it in place on every tick.

State Machine
-------------
    NoMessage --post------------> Posted
    Posted    --tick------------> Posted     (edit in place)
    Posted    --message gone----> NoMessage  (next tick posts a replacement)
    Posted    --channel cleared-> NoMessage  (message forgotten, not deleted)
    Posted    --reassign(X)-----> Posted(X)  (old message abandoned, new one posted now)

Design Notes
------------
- Only a confirmed "message not found" drops the message; any other
  transport failure is logged and the next tick retries the edit.
- Ticks never overlap: a tick that arrives while another refresh holds the
  lock is skipped. Out-of-band posts (`post`, `reassign`) wait for the lock.
- The publisher owns no upstream connections; every side effect goes through
  the transport.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from logging import Logger
from typing import Any, Awaitable, Callable, Optional

from src.core.exceptions import MessageNotFoundError, TransportError
from src.core.logging.logger import LogContext, get_logger
from src.core.scheduler.base import Scheduler
from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.dashboard.transport import DashboardTransport
from src.modules.shared.exceptions import DashboardChannelNotConfiguredError
from src.modules.status.aggregator import DashboardAggregator
from src.modules.status.models import DashboardSnapshot

Renderer = Callable[[DashboardSnapshot, EnabledServiceSelection], Any]
ChannelProvider = Callable[[], Optional[int]]
SelectionProvider = Callable[[], EnabledServiceSelection]
ChannelSetter = Callable[[int], Awaitable[None]]


class PublisherState(str, Enum):
    NO_MESSAGE = "no_message"
    POSTED = "posted"


class TickOutcome(str, Enum):
    POSTED = "posted"
    EDITED = "edited"
    CLEARED = "cleared"
    IDLE = "idle"
    MESSAGE_GONE = "message_gone"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class PostedDashboardMessage:
    channel_id: int
    message_id: int
    snapshot: DashboardSnapshot


class DashboardPublisher:
    """
    Args:
        name: Label used in logs ("dashboard", "live")
        aggregator: Produces the composite snapshot
        transport: Creates and edits chat messages
        renderer: Turns a snapshot plus selection into a transport payload
        channel_provider: Returns the current target channel (None = unset)
        selection_provider: Returns the current enabled-service selection
        scheduler: Clock source
        channel_setter: Persists a reassigned channel (settings write-through)
    """

    def __init__(
        self,
        name: str,
        aggregator: DashboardAggregator,
        transport: DashboardTransport,
        renderer: Renderer,
        channel_provider: ChannelProvider,
        selection_provider: SelectionProvider,
        scheduler: Scheduler,
        channel_setter: Optional[ChannelSetter] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self.name = name
        self.aggregator = aggregator
        self.transport = transport
        self.renderer = renderer
        self.channel_provider = channel_provider
        self.selection_provider = selection_provider
        self.scheduler = scheduler
        self.channel_setter = channel_setter
        self.log = logger or get_logger(__name__)

        self._posted: Optional[PostedDashboardMessage] = None
        self._lock = asyncio.Lock()
        self.ticks_skipped = 0

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> PublisherState:
        return PublisherState.POSTED if self._posted else PublisherState.NO_MESSAGE

    @property
    def posted(self) -> Optional[PostedDashboardMessage]:
        return self._posted

    @property
    def refreshing(self) -> bool:
        return self._lock.locked()

    def forget(self) -> None:
        """Drop the message reference without touching the message."""
        self._posted = None

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def post(self, now: Optional[float] = None) -> PostedDashboardMessage:
        """
        Post a new message to the configured channel.

        Raises:
            DashboardChannelNotConfiguredError: No channel is set
            TransportError: The message could not be created
        """
        channel_id = self.channel_provider()
        if not channel_id:
            raise DashboardChannelNotConfiguredError()

        async with self._lock:
            return await self._post(channel_id, now)

    async def reassign(self, channel_id: int, now: Optional[float] = None) -> PostedDashboardMessage:
        """Move the dashboard to `channel_id` and post there immediately."""
        if self.channel_setter is not None:
            await self.channel_setter(channel_id)

        async with self._lock:
            abandoned = self._posted
            self._posted = None
            if abandoned is not None and abandoned.channel_id != channel_id:
                self.log.info(
                    "Dashboard message abandoned after channel change",
                    extra={
                        "publisher": self.name,
                        "old_channel_id": abandoned.channel_id,
                        "old_message_id": abandoned.message_id,
                        "channel_id": channel_id,
                    },
                )
            return await self._post(channel_id, now)

    async def tick(self, now: Optional[float] = None) -> TickOutcome:
        """One periodic refresh. Never raises for transport failures."""
        if self._lock.locked():
            self.ticks_skipped += 1
            self.log.debug("Dashboard tick skipped: refresh in progress", extra={"publisher": self.name})
            return TickOutcome.SKIPPED

        async with self._lock:
            with LogContext(component="dashboard", operation=f"{self.name}_tick"):
                return await self._tick(now)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _render(self, now: Optional[float]) -> tuple[DashboardSnapshot, Any]:
        snapshot = await self.aggregator.aggregate(now)
        return snapshot, self.renderer(snapshot, self.selection_provider())

    async def _post(self, channel_id: int, now: Optional[float]) -> PostedDashboardMessage:
        snapshot, payload = await self._render(now)
        message_id = await self.transport.create_message(channel_id, payload)
        self._posted = PostedDashboardMessage(channel_id, message_id, snapshot)
        self.log.info(
            "Dashboard posted",
            extra={"publisher": self.name, "channel_id": channel_id, "message_id": message_id},
        )
        return self._posted

    async def _tick(self, now: Optional[float]) -> TickOutcome:
        channel_id = self.channel_provider()

        if not channel_id:
            if self._posted is not None:
                self._posted = None
                return TickOutcome.CLEARED
            return TickOutcome.IDLE

        if self._posted is None or self._posted.channel_id != channel_id:
            # A message in another channel is abandoned, never deleted
            self._posted = None
            try:
                await self._post(channel_id, now)
            except TransportError as e:
                self._log_transport_failure("create", channel_id, e)
                return TickOutcome.FAILED
            return TickOutcome.POSTED

        current = self._posted
        snapshot, payload = await self._render(now)
        try:
            await self.transport.edit_message(current.channel_id, current.message_id, payload)
        except MessageNotFoundError:
            self.log.info(
                "Dashboard message gone, will post a replacement",
                extra={"publisher": self.name, "channel_id": current.channel_id, "message_id": current.message_id},
            )
            self._posted = None
            return TickOutcome.MESSAGE_GONE
        except TransportError as e:
            self._log_transport_failure("edit", current.channel_id, e)
            return TickOutcome.FAILED

        self._posted = PostedDashboardMessage(current.channel_id, current.message_id, snapshot)
        return TickOutcome.EDITED

    def _log_transport_failure(self, action: str, channel_id: int, error: TransportError) -> None:
        self.log.warning(
            f"Dashboard {action} failed",
            extra={
                "publisher": self.name,
                "channel_id": channel_id,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
