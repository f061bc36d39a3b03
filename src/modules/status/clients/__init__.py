"""
Upstream integration clients and the factory that wires them into caches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from src.core.config.config import BotConfig
from src.core.http import UpstreamHttp
from src.core.scheduler.base import Scheduler
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.clients.arr import ArrClient
from src.modules.status.clients.base import StatusClient
from src.modules.status.clients.cluster import ClusterClient
from src.modules.status.clients.docker import DockerClient, docker_http
from src.modules.status.clients.downloads import DownloadsClient
from src.modules.status.clients.media import MediaClient


@dataclass
class StatusStack:
    """Caches plus the HTTP clients they own (closed on shutdown)."""

    caches: List[ServiceStatusCache]
    http_clients: List[UpstreamHttp] = field(default_factory=list)

    async def aclose(self) -> None:
        for http in self.http_clients:
            await http.aclose()


def build_clients(config: BotConfig, scheduler: Scheduler) -> tuple[List[StatusClient], List[UpstreamHttp]]:
    http = UpstreamHttp(timeout=config.upstream_timeout)
    proxmox_http = UpstreamHttp(timeout=config.upstream_timeout, verify=config.proxmox_verify_ssl)
    socket_http = docker_http(config.docker_socket_path, config.upstream_timeout)

    clients: List[StatusClient] = [
        ArrClient(
            http,
            scheduler,
            apps=(
                (config.radarr, "v3"),
                (config.sonarr, "v3"),
                (config.lidarr, "v1"),
                (config.readarr, "v1"),
            ),
            prowlarr=config.prowlarr,
        ),
        DockerClient(socket_http, scheduler, config.docker_socket_path),
        MediaClient(http, scheduler, jellyfin=config.jellyfin, plex=config.plex),
        DownloadsClient(http, scheduler, qbittorrent=config.qbittorrent, nzbget=config.nzbget),
        ClusterClient(proxmox_http, scheduler, config.proxmox),
    ]
    return clients, [http, proxmox_http, socket_http]


def build_status_stack(config: BotConfig, scheduler: Scheduler) -> StatusStack:
    clients, http_clients = build_clients(config, scheduler)
    ttls = config.cache_ttls
    ttl_for = {
        "arr": ttls.arr,
        "docker": ttls.docker,
        "media": ttls.media,
        "downloads": ttls.downloads,
        "cluster": ttls.cluster,
    }
    caches = [
        ServiceStatusCache(
            client.integration,
            client.fetch_status,
            ttl=ttl_for[client.integration.value],
            scheduler=scheduler,
            timeout=config.upstream_timeout * 2,
        )
        for client in clients
    ]
    return StatusStack(caches=caches, http_clients=http_clients)


__all__ = [
    "ArrClient",
    "ClusterClient",
    "DockerClient",
    "DownloadsClient",
    "MediaClient",
    "StatusClient",
    "StatusStack",
    "build_clients",
    "build_status_stack",
]
