"""Container host client: Docker Engine API over the daemon's Unix socket."""

from __future__ import annotations

import os

import httpx

from src.core.exceptions import IntegrationNotConfiguredError
from src.core.http import UpstreamHttp
from src.core.scheduler.base import Scheduler
from src.modules.status.clients.base import StatusClient
from src.modules.status.models import Integration, ServiceSnapshot

DOCKER_API_BASE = "http://docker"


def docker_http(socket_path: str, timeout: float) -> UpstreamHttp:
    """httpx client bound to the Docker socket."""
    return UpstreamHttp(
        timeout=timeout,
        transport=httpx.AsyncHTTPTransport(uds=socket_path),
        base_url=DOCKER_API_BASE,
    )


class DockerClient(StatusClient):
    integration = Integration.DOCKER

    def __init__(self, http: UpstreamHttp, scheduler: Scheduler, socket_path: str) -> None:
        super().__init__(http, scheduler)
        self.socket_path = socket_path

    async def fetch_status(self) -> ServiceSnapshot:
        if not self.socket_path or not os.path.exists(self.socket_path):
            raise IntegrationNotConfiguredError("Docker socket")

        containers = await self.http.get_json("Docker", "/containers/json", params={"all": "true"})
        containers = containers or []

        summary = [
            {
                "name": (c.get("Names") or ["?"])[0].lstrip("/"),
                "state": c.get("State", "unknown"),
                "status": c.get("Status", ""),
                "image": c.get("Image", ""),
            }
            for c in containers
        ]
        return self.snapshot(
            {
                "total": len(summary),
                "running": sum(1 for c in summary if c["state"] == "running"),
                "stopped": sum(1 for c in summary if c["state"] == "exited"),
                "containers": summary,
            }
        )
