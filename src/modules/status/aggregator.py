"""
Dashboard Aggregator

Fans out to every per-integration cache concurrently and merges the results
into one immutable `DashboardSnapshot`. The composite always contains every
integration: a cache that somehow raises is recorded as an `error` entry for
that integration only. No retries happen here.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Optional

from src.core.logging.logger import get_logger
from src.core.scheduler.base import Scheduler
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.models import DashboardSnapshot, Integration, ServiceSnapshot

logger = get_logger(__name__)


class DashboardAggregator:
    def __init__(self, caches: Iterable[ServiceStatusCache], scheduler: Scheduler) -> None:
        self._caches: Dict[Integration, ServiceStatusCache] = {c.integration: c for c in caches}
        self._scheduler = scheduler
        self.last_snapshot: Optional[DashboardSnapshot] = None

    @property
    def integrations(self) -> tuple[Integration, ...]:
        return tuple(self._caches)

    def cache_for(self, integration: Integration) -> ServiceStatusCache:
        return self._caches[integration]

    async def aggregate(self, now: Optional[float] = None) -> DashboardSnapshot:
        now = self._scheduler.now() if now is None else now
        integrations = list(self._caches)

        results = await asyncio.gather(
            *(self._caches[i].get(now) for i in integrations),
            return_exceptions=True,
        )

        services: Dict[Integration, ServiceSnapshot] = {}
        for integration, result in zip(integrations, results):
            if isinstance(result, ServiceSnapshot):
                services[integration] = result
                continue
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.error(
                "Status cache raised past its boundary",
                extra={
                    "integration": integration.value,
                    "error": str(result),
                    "error_type": type(result).__name__,
                },
            )
            services[integration] = ServiceSnapshot.error(
                integration, str(result) or type(result).__name__, now
            )

        snapshot = DashboardSnapshot(services=services, captured_at=now)
        self.last_snapshot = snapshot

        failed = snapshot.failed()
        if failed:
            logger.info(
                "Aggregation completed with degraded integrations",
                extra={
                    "total": len(snapshot),
                    "failed": len(failed),
                    "failed_integrations": [i.value for i in failed],
                },
            )
        return snapshot

    def stats(self) -> list[dict]:
        return [cache.stats() for cache in self._caches.values()]
