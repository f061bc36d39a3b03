"""
Upstream Service Clients: shared base.

Each integration client aggregates one or more upstream apps into a single
`ServiceSnapshot`. Clients may raise; the Service Status Cache converts the
failure. Inside a multi-app integration, each app is queried concurrently and
one app failing only marks that app's entry (the `allSettled` shape):

    {"radarr": {"status": "online", ...}, "sonarr": {"status": "error", "message": "..."}}
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Mapping

from src.core.config.config import ServiceEndpoint
from src.core.exceptions import (
    IntegrationNotConfiguredError,
    UpstreamError,
    UpstreamUnavailableError,
)
from src.core.http import UpstreamHttp
from src.core.logging.logger import get_logger
from src.core.scheduler.base import Scheduler
from src.modules.status.models import Integration, ServiceSnapshot

logger = get_logger(__name__)

AppCheck = Callable[[], Awaitable[Dict[str, Any]]]


class StatusClient(ABC):
    integration: Integration

    def __init__(self, http: UpstreamHttp, scheduler: Scheduler) -> None:
        self.http = http
        self.scheduler = scheduler

    @abstractmethod
    async def fetch_status(self) -> ServiceSnapshot: ...

    def snapshot(self, payload: Mapping[str, Any]) -> ServiceSnapshot:
        return ServiceSnapshot.online(self.integration, payload, self.scheduler.now())

    @staticmethod
    def require(endpoint: ServiceEndpoint, *fields: str) -> None:
        """Raise `IntegrationNotConfiguredError` unless url and `fields` are set."""
        if not endpoint.url or any(not getattr(endpoint, f) for f in fields):
            raise IntegrationNotConfiguredError(endpoint.name.title())


async def settle_apps(checks: Mapping[str, AppCheck]) -> Dict[str, Dict[str, Any]]:
    """Run app checks concurrently; failures become `{status, message}` entries."""
    names = list(checks)
    results = await asyncio.gather(*(checks[n]() for n in names), return_exceptions=True)

    settled: Dict[str, Dict[str, Any]] = {}
    for name, result in zip(names, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, IntegrationNotConfiguredError):
            settled[name] = {"status": "disabled", "message": result.message}
        elif isinstance(result, UpstreamUnavailableError):
            settled[name] = {"status": "offline", "message": result.message}
        elif isinstance(result, UpstreamError):
            settled[name] = {"status": "error", "message": result.message}
        elif isinstance(result, BaseException):
            logger.warning(
                "Unexpected app check failure",
                extra={"app": name, "error": str(result), "error_type": type(result).__name__},
            )
            settled[name] = {"status": "error", "message": str(result) or type(result).__name__}
        else:
            settled[name] = {"status": "online", **result}
    return settled


def raise_if_all_failed(service: str, apps: Mapping[str, Mapping[str, Any]]) -> None:
    """
    Escalate an integration whose every app failed.

    All apps disabled -> not configured; none online but some reachable
    errors -> the first failure decides between offline and error.
    """
    statuses = [app["status"] for app in apps.values()]
    if any(s == "online" for s in statuses):
        return
    if all(s == "disabled" for s in statuses):
        raise IntegrationNotConfiguredError(service)

    failures = [app for app in apps.values() if app["status"] in ("offline", "error")]
    first = failures[0]
    if all(app["status"] == "offline" for app in failures):
        raise UpstreamUnavailableError(service, first["message"])
    raise UpstreamError(service, first["message"])


def percent(used: Any, total: Any) -> float | None:
    try:
        used_f, total_f = float(used), float(total)
    except (TypeError, ValueError):
        return None
    if total_f <= 0:
        return None
    return round(used_f / total_f * 100, 1)
