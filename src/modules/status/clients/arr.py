"""ARR suite client (Radarr, Sonarr, Lidarr, Readarr, Prowlarr)."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

from src.core.config.config import ServiceEndpoint
from src.core.http import UpstreamHttp
from src.core.scheduler.base import Scheduler
from src.modules.status.clients.base import StatusClient, raise_if_all_failed, settle_apps
from src.modules.status.models import Integration, ServiceSnapshot

UPCOMING_WINDOW = timedelta(days=7)


class ArrClient(StatusClient):
    integration = Integration.ARR

    def __init__(
        self,
        http: UpstreamHttp,
        scheduler: Scheduler,
        apps: Tuple[Tuple[ServiceEndpoint, str], ...],
        prowlarr: ServiceEndpoint,
    ) -> None:
        """
        Args:
            apps: (endpoint, api version) pairs for the queue-based apps
            prowlarr: Indexer manager endpoint
        """
        super().__init__(http, scheduler)
        self._apps = apps
        self._prowlarr = prowlarr

    async def fetch_status(self) -> ServiceSnapshot:
        checks = {
            endpoint.name: (lambda e=endpoint, v=version: self._queue_app(e, v))
            for endpoint, version in self._apps
        }
        checks[self._prowlarr.name] = self._indexer_app

        apps = await settle_apps(checks)
        raise_if_all_failed("ARR stack", apps)
        return self.snapshot(apps)

    async def _get(self, endpoint: ServiceEndpoint, path: str, **params: Any) -> Any:
        return await self.http.get_json(
            endpoint.name.title(),
            f"{endpoint.base_url}{path}",
            headers={"X-Api-Key": endpoint.api_key},
            params=params or None,
        )

    async def _queue_app(self, endpoint: ServiceEndpoint, version: str) -> Dict[str, Any]:
        self.require(endpoint, "api_key")
        start = datetime.fromtimestamp(self.scheduler.now(), tz=timezone.utc)
        system, queue, calendar = await asyncio.gather(
            self._get(endpoint, f"/api/{version}/system/status"),
            self._get(endpoint, f"/api/{version}/queue"),
            self._get(
                endpoint,
                f"/api/{version}/calendar",
                start=start.isoformat(),
                end=(start + UPCOMING_WINDOW).isoformat(),
            ),
        )
        records = (queue or {}).get("records") or []
        return {
            "version": (system or {}).get("version", "unknown"),
            "queued": len(records),
            "upcoming": len(calendar or []),
            "failed": sum(1 for r in records if r.get("status") == "failed"),
        }

    async def _indexer_app(self) -> Dict[str, Any]:
        endpoint = self._prowlarr
        self.require(endpoint, "api_key")
        system, indexers = await asyncio.gather(
            self._get(endpoint, "/api/v1/system/status"),
            self._get(endpoint, "/api/v1/indexer/status"),
        )
        indexers = indexers or []
        return {
            "version": (system or {}).get("version", "unknown"),
            "active_indexers": sum(1 for i in indexers if i.get("status") == "healthy"),
            "total_indexers": len(indexers),
        }
