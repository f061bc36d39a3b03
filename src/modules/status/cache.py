"""
Service Status Cache

Purpose
-------
Cache one integration's upstream snapshot for a fixed TTL and guarantee that
callers only ever receive a `ServiceSnapshot`, never an exception.

Responsibilities
----------------
- Serve the stored snapshot with no I/O while it is fresh
- On a miss, run the integration's fetch under a bounded timeout
- Convert every fetch failure into a snapshot:
  - not configured -> `disabled`
  - timeout / unreachable -> `offline`
  - anything else -> `error`
- Share one in-flight fetch between concurrent callers (single flight)
- Discard results that complete after a newer fetch was issued

Design Notes
------------
- Each fetch is stamped with a generation number when issued. A completion is
  stored only if its generation is newer than the stored one, so a slow fetch
  can never overwrite a fresher result.
- Freshness is measured from the time the fetch was issued.
- Failure snapshots are cached for the full TTL; retrying happens on the next
  miss, not here.
- The shared fetch runs in its own task behind `asyncio.shield`, so one caller
  being cancelled does not cancel the fetch for everyone else.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from src.core.exceptions import IntegrationNotConfiguredError, UpstreamUnavailableError
from src.core.logging.logger import get_logger
from src.core.scheduler.base import Scheduler
from src.modules.status.models import Integration, ServiceSnapshot

logger = get_logger(__name__)

FetchStatus = Callable[[], Awaitable[ServiceSnapshot]]


class ServiceStatusCache:
    """
    Per-integration TTL cache with single-flight refresh.

    Args:
        integration: Which integration this cache serves
        fetch: Coroutine function returning a fresh `ServiceSnapshot`
        ttl: Seconds a stored snapshot stays fresh
        scheduler: Clock source
        timeout: Upper bound on one fetch (None = unbounded)
    """

    def __init__(
        self,
        integration: Integration,
        fetch: FetchStatus,
        ttl: float,
        scheduler: Scheduler,
        timeout: Optional[float] = None,
    ) -> None:
        self.integration = integration
        self.ttl = ttl
        self._fetch = fetch
        self._scheduler = scheduler
        self._timeout = timeout

        self._entry: Optional[ServiceSnapshot] = None
        self._stored_at: Optional[float] = None
        self._entry_generation = 0
        self._issued_generation = 0
        self._inflight: Optional[asyncio.Task[ServiceSnapshot]] = None

        self.fetch_count = 0
        self.hit_count = 0
        self.stale_discards = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_fresh(self, now: float) -> bool:
        return self._stored_at is not None and now - self._stored_at < self.ttl

    def peek(self) -> Optional[ServiceSnapshot]:
        """Last stored snapshot, fresh or not, without any I/O."""
        return self._entry

    async def get(self, now: Optional[float] = None) -> ServiceSnapshot:
        now = self._scheduler.now() if now is None else now

        if self._entry is not None and self.is_fresh(now):
            self.hit_count += 1
            return self._entry

        task = self._inflight
        if task is None or task.done():
            self._issued_generation += 1
            task = asyncio.get_running_loop().create_task(
                self._refresh(self._issued_generation, now),
                name=f"status-fetch-{self.integration.value}",
            )
            self._inflight = task

        return await asyncio.shield(task)

    def invalidate(self) -> None:
        """Force the next `get` to fetch; results of in-flight fetches are discarded."""
        self._issued_generation += 1
        self._entry_generation = self._issued_generation
        self._stored_at = None
        self._inflight = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _call_fetch(self) -> ServiceSnapshot:
        if self._timeout is None:
            return await self._fetch()
        return await asyncio.wait_for(self._fetch(), timeout=self._timeout)

    async def _refresh(self, generation: int, issued_at: float) -> ServiceSnapshot:
        self.fetch_count += 1
        try:
            snapshot = await self._call_fetch()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            snapshot = self._failure_snapshot(exc, issued_at)

        if generation > self._entry_generation:
            self._entry = snapshot
            self._stored_at = issued_at
            self._entry_generation = generation
            logger.debug(
                "Status cache refreshed",
                extra={
                    "integration": self.integration.value,
                    "status": snapshot.status.value,
                    "generation": generation,
                },
            )
        else:
            self.stale_discards += 1
            logger.debug(
                "Discarded stale status result",
                extra={
                    "integration": self.integration.value,
                    "generation": generation,
                    "stored_generation": self._entry_generation,
                },
            )

        if self._inflight is asyncio.current_task():
            self._inflight = None
        return snapshot

    def _failure_snapshot(self, exc: BaseException, captured_at: float) -> ServiceSnapshot:
        integration = self.integration

        if isinstance(exc, IntegrationNotConfiguredError):
            return ServiceSnapshot.disabled(integration, exc.message, captured_at)

        if isinstance(exc, asyncio.TimeoutError):
            message = f"{integration.label} timed out after {self._timeout:g}s"
            self._log_failure("offline", exc, message)
            return ServiceSnapshot.offline(integration, message, captured_at)

        if isinstance(exc, UpstreamUnavailableError):
            self._log_failure("offline", exc, exc.message)
            return ServiceSnapshot.offline(integration, exc.message, captured_at)

        message = str(exc) or type(exc).__name__
        self._log_failure("error", exc, message)
        return ServiceSnapshot.error(integration, message, captured_at)

    def _log_failure(self, status: str, exc: BaseException, message: str) -> None:
        logger.warning(
            "Upstream fetch failed",
            extra={
                "integration": self.integration.value,
                "status": status,
                "error": message,
                "error_type": type(exc).__name__,
            },
        )

    def stats(self) -> dict[str, Any]:
        return {
            "integration": self.integration.value,
            "ttl": self.ttl,
            "fetches": self.fetch_count,
            "hits": self.hit_count,
            "stale_discards": self.stale_discards,
            "status": self._entry.status.value if self._entry else None,
        }
