"""
Admin channel settings.

Holds the channel that receives invite approval prompts. The value is
persisted as the `admin` document `{adminChannelId, lastUpdated}`; when no
document exists yet, `ALERT_CHANNEL_ID` seeds it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from logging import Logger
from typing import Any, Dict, Optional

from src.core.config.config import BotConfig
from src.core.scheduler.base import Scheduler
from src.core.storage.base import DocumentStore
from src.modules.shared.base_service import BaseService

ADMIN_DOCUMENT = "admin"


def iso_timestamp(scheduler: Scheduler) -> str:
    return datetime.fromtimestamp(scheduler.now(), tz=timezone.utc).isoformat()


class AdminSettingsService(BaseService):
    def __init__(
        self,
        config: BotConfig,
        store: DocumentStore,
        scheduler: Scheduler,
        logger: Logger,
    ) -> None:
        super().__init__(config, logger)
        self.store = store
        self.scheduler = scheduler
        self._channel_id: Optional[int] = config.seed_admin_channel_id
        self._last_updated: Optional[str] = None

    @property
    def admin_channel_id(self) -> Optional[int]:
        return self._channel_id

    @property
    def last_updated(self) -> Optional[str]:
        return self._last_updated

    async def load(self) -> None:
        record = await self.store.load(ADMIN_DOCUMENT)
        if record is None:
            return
        raw = record.get("adminChannelId")
        self._channel_id = int(raw) if raw else None
        self._last_updated = record.get("lastUpdated")
        self.log.info("✓ Admin settings loaded", extra={"channel_id": self._channel_id})

    async def set_channel(self, channel_id: int) -> None:
        self._channel_id = int(channel_id)
        await self._persist()
        self.log_operation("set_admin_channel", channel_id=channel_id)

    async def clear_channel(self) -> None:
        self._channel_id = None
        await self._persist()
        self.log_operation("clear_admin_channel")

    def status(self) -> Dict[str, Any]:
        return {"channel_id": self._channel_id, "last_updated": self._last_updated}

    async def _persist(self) -> None:
        self._last_updated = iso_timestamp(self.scheduler)
        await self.store.save(
            ADMIN_DOCUMENT,
            {
                "adminChannelId": str(self._channel_id) if self._channel_id else None,
                "lastUpdated": self._last_updated,
            },
        )
