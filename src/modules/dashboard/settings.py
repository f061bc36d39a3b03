"""
Dashboard Settings

Owns the dashboard channel and the enabled-service selection, persisted
together as the `dashboard` document:

    {"channelId": "123", "enabledServices": "all" | ["plex", ...], "lastUpdated": "..."}

Every mutation writes through immediately.
"""

from __future__ import annotations

from logging import Logger
from typing import Any, Dict, Optional

from src.core.config.catalogue import ServiceCatalogue
from src.core.config.config import BotConfig
from src.core.scheduler.base import Scheduler
from src.core.storage.base import DocumentStore
from src.modules.admin.service import iso_timestamp
from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.shared.base_service import BaseService

DASHBOARD_DOCUMENT = "dashboard"


class DashboardSettingsService(BaseService):
    def __init__(
        self,
        config: BotConfig,
        store: DocumentStore,
        catalogue: ServiceCatalogue,
        scheduler: Scheduler,
        logger: Logger,
    ) -> None:
        super().__init__(config, logger)
        self.store = store
        self.catalogue = catalogue
        self.scheduler = scheduler
        self._channel_id: Optional[int] = config.seed_dashboard_channel_id
        self._selection = EnabledServiceSelection.all()
        self._last_updated: Optional[str] = None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def channel_id(self) -> Optional[int]:
        return self._channel_id

    @property
    def selection(self) -> EnabledServiceSelection:
        return self._selection

    def status(self) -> Dict[str, Any]:
        enabled = self._selection.enabled_ids(self.catalogue)
        return {
            "channel_id": self._channel_id,
            "all_enabled": self._selection.is_all,
            "enabled": enabled,
            "enabled_count": len(enabled),
            "total_services": len(self.catalogue),
            "last_updated": self._last_updated,
        }

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def load(self) -> None:
        record = await self.store.load(DASHBOARD_DOCUMENT)
        if record is None:
            return

        # Older state files used `dashboardChannelId`
        raw = record.get("channelId", record.get("dashboardChannelId"))
        self._channel_id = int(raw) if raw else None
        self._selection = EnabledServiceSelection.from_record(record.get("enabledServices"))
        self._last_updated = record.get("lastUpdated")
        self.log.info(
            "✓ Dashboard settings loaded",
            extra={"channel_id": self._channel_id, "all_enabled": self._selection.is_all},
        )

    async def set_channel(self, channel_id: int) -> None:
        self._channel_id = int(channel_id)
        await self._persist()
        self.log_operation("set_dashboard_channel", channel_id=channel_id)

    async def clear_channel(self) -> None:
        self._channel_id = None
        await self._persist()
        self.log_operation("clear_dashboard_channel")

    async def toggle_service(self, service_id: str) -> bool:
        """
        Flip one service.

        Returns:
            Whether the service is enabled afterwards

        Raises:
            UnknownServiceError: Id not in the catalogue
        """
        self._selection = self._selection.toggle(service_id, self.catalogue)
        await self._persist()
        enabled = self._selection.is_enabled(service_id)
        self.log_operation("toggle_dashboard_service", service_id=service_id, enabled=enabled)
        return enabled

    async def enable_all(self) -> None:
        self._selection = self._selection.enable_all()
        await self._persist()
        self.log_operation("enable_all_dashboard_services")

    async def disable_all(self) -> None:
        self._selection = self._selection.disable_all()
        await self._persist()
        self.log_operation("disable_all_dashboard_services")

    async def reset(self) -> None:
        await self.enable_all()

    async def _persist(self) -> None:
        self._last_updated = iso_timestamp(self.scheduler)
        await self.store.save(
            DASHBOARD_DOCUMENT,
            {
                "channelId": str(self._channel_id) if self._channel_id else None,
                "enabledServices": self._selection.to_record(),
                "lastUpdated": self._last_updated,
            },
        )
