"""
Service Container
=================

Purpose
-------
Build every component of the bot from one `BotConfig` and hand them out as
singletons to the bot, cogs and views.

Responsibilities
----------------
- Construct storage, catalogue, status stack, settings services, publishers,
  the invite workflow and the presence rotation in dependency order
- Load persisted runtime state once at startup
- Tear everything down in reverse order on shutdown

Non-Responsibilities
--------------------
- Discord connection lifecycle (HomelabBot)
- Logging setup (src.main)

Architecture Notes
------------------
- Receives the Discord client (`attach`) so the transport and notifier can talk to it;
  nothing else in the container imports discord.py.
- Tests build a container with a `VirtualScheduler`, a stub client and an
  in-memory store through the optional constructor arguments.
"""

from __future__ import annotations

import time
from datetime import timedelta
from functools import partial
from typing import TYPE_CHECKING, Dict, Optional

from src.core.config.catalogue import ServiceCatalogue, load_catalogue
from src.core.config.config import BotConfig
from src.core.http import UpstreamHttp
from src.core.logging.logger import get_logger
from src.core.scheduler.asyncio_scheduler import AsyncioScheduler
from src.core.scheduler.base import ScheduledHandle, Scheduler
from src.core.services.error_response_service import ErrorResponseService
from src.core.storage.base import DocumentStore, build_document_store
from src.modules.admin.service import AdminSettingsService
from src.modules.dashboard.live import LiveUpdateService
from src.modules.dashboard.publisher import DashboardPublisher
from src.modules.dashboard.settings import DashboardSettingsService
from src.modules.dashboard.transport import DashboardTransport, DiscordDashboardTransport
from src.modules.invite.notifier import DiscordInviteNotifier
from src.modules.invite.one_shot import OneShotRegistry
from src.modules.invite.repository import PendingInviteRepository
from src.modules.invite.service import InviteNotifier, InviteWorkflowService
from src.modules.invite.wizarr import WizarrClient
from src.modules.presence.service import PresenceService
from src.modules.status.aggregator import DashboardAggregator
from src.modules.status.clients import StatusStack, build_status_stack
from src.ui.dashboard import render_dashboard

if TYPE_CHECKING:
    import discord

logger = get_logger(__name__)


class ServiceContainer:
    """
    Usage:
        container = ServiceContainer(config)
        bot = HomelabBot(config, container)  # calls container.attach(bot)
        await container.initialize()

        await container.invites.request_invite(...)
        await container.dashboard.tick()
    """

    def __init__(
        self,
        config: BotConfig,
        client: Optional[discord.Client] = None,
        scheduler: Optional[Scheduler] = None,
        store: Optional[DocumentStore] = None,
        catalogue: Optional[ServiceCatalogue] = None,
        transport: Optional[DashboardTransport] = None,
        notifier: Optional[InviteNotifier] = None,
        status_stack: Optional[StatusStack] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self.store: DocumentStore = store or build_document_store(config)
        self.catalogue: ServiceCatalogue = catalogue or load_catalogue(config.services_file)
        self.errors = ErrorResponseService()

        self._transport = transport
        self._notifier = notifier
        self._status_stack = status_stack
        self._wizarr_http: Optional[UpstreamHttp] = None
        self._dashboard_timer: Optional[ScheduledHandle] = None
        self._initialized = False
        self._service_init_times: Dict[str, float] = {}

    def attach(self, client: discord.Client) -> None:
        """Bind the Discord client; must happen before `initialize`."""
        self.client = client

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        """Build every service and load persisted state."""
        if self._initialized:
            logger.warning("ServiceContainer already initialized")
            return

        start = time.perf_counter()
        logger.info("Service container initialization starting...")

        if self.client is None and (self._transport is None or self._notifier is None):
            raise RuntimeError("ServiceContainer needs a Discord client before initialize()")

        await self.store.initialize()

        config, scheduler = self.config, self.scheduler
        stack = self._status_stack or build_status_stack(config, scheduler)
        self.status_stack = stack
        self.aggregator = DashboardAggregator(stack.caches, scheduler)

        self.admin_settings = AdminSettingsService(
            config, self.store, scheduler, get_logger("src.modules.admin.service")
        )
        self.dashboard_settings = DashboardSettingsService(
            config, self.store, self.catalogue, scheduler, get_logger("src.modules.dashboard.settings")
        )
        await self.admin_settings.load()
        await self.dashboard_settings.load()

        transport = self._transport or DiscordDashboardTransport(self.client)
        renderer = partial(render_dashboard, catalogue=self.catalogue, preferred_node=config.presence_node)
        self.dashboard = DashboardPublisher(
            name="dashboard",
            aggregator=self.aggregator,
            transport=transport,
            renderer=renderer,
            channel_provider=lambda: self.dashboard_settings.channel_id,
            selection_provider=lambda: self.dashboard_settings.selection,
            scheduler=scheduler,
            channel_setter=self.dashboard_settings.set_channel,
            logger=get_logger("src.modules.dashboard.publisher"),
        )
        self.live = LiveUpdateService(
            config,
            self.aggregator,
            transport,
            renderer,
            lambda: self.dashboard_settings.selection,
            scheduler,
            get_logger("src.modules.dashboard.live"),
        )

        self._wizarr_http = UpstreamHttp(timeout=config.upstream_timeout)
        self.invites = InviteWorkflowService(
            config,
            PendingInviteRepository(self.store, get_logger("src.modules.invite.repository")),
            self.admin_settings,
            WizarrClient.from_config(config, self._wizarr_http, scheduler),
            self._notifier or DiscordInviteNotifier(self.client, timedelta(seconds=config.invite_expiry_seconds)),
            scheduler,
            OneShotRegistry(scheduler),
            get_logger("src.modules.invite.service"),
            catalogue=self.catalogue,
        )
        await self.invites.restore()

        self.presence = PresenceService(
            config, self.aggregator, scheduler, get_logger("src.modules.presence.service")
        )

        self._initialized = True
        self._service_init_times["total"] = time.perf_counter() - start
        logger.info(
            "✓ Service container initialized",
            extra={
                "integrations": [i.value for i in self.aggregator.integrations],
                "catalogue_services": len(self.catalogue),
                "state_backend": config.state_backend.value,
                "duration_ms": round(self._service_init_times["total"] * 1000, 2),
            },
        )

    def start_dashboard_refresh(self) -> None:
        """Periodic dashboard ticks; the first one lands after the startup delay."""
        if self._dashboard_timer is not None:
            return
        self._dashboard_timer = self.scheduler.run_every(
            self.config.dashboard_refresh_interval,
            self.dashboard.tick,
            name="dashboard-refresh",
            initial_delay=self.config.dashboard_startup_delay,
        )
        logger.info(
            "✓ Dashboard refresh started",
            extra={
                "interval": self.config.dashboard_refresh_interval,
                "initial_delay": self.config.dashboard_startup_delay,
                "channel_id": self.dashboard_settings.channel_id,
            },
        )

    async def shutdown(self) -> None:
        """Cancel timers and release connections."""
        if not self._initialized:
            return

        logger.info("Shutting down service container...")
        if self._dashboard_timer is not None:
            self._dashboard_timer.cancel()
            self._dashboard_timer = None
        if self.live.is_running:
            self.live.stop()
        self.presence.stop()
        self.invites.shutdown()

        await self.scheduler.shutdown()
        await self.status_stack.aclose()
        if self._wizarr_http is not None:
            await self._wizarr_http.aclose()
        await self.store.close()

        self._initialized = False
        logger.info("✓ Service container shut down")

    @property
    def initialized(self) -> bool:
        return self._initialized
