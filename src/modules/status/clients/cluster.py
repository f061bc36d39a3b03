"""Hypervisor cluster client (Proxmox VE)."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from src.core.config.config import ServiceEndpoint
from src.core.exceptions import IntegrationNotConfiguredError
from src.core.http import UpstreamHttp
from src.core.logging.logger import get_logger
from src.core.scheduler.base import Scheduler
from src.modules.status.clients.base import StatusClient, percent
from src.modules.status.models import Integration, ServiceSnapshot

logger = get_logger(__name__)


class ClusterClient(StatusClient):
    """
    Proxmox VE API client.

    Authenticates with an API token: `PROXMOX_USERNAME` holds the token id
    (`user@realm!token`) and `PROXMOX_TOKEN` the secret.
    """

    integration = Integration.CLUSTER

    def __init__(self, http: UpstreamHttp, scheduler: Scheduler, proxmox: ServiceEndpoint) -> None:
        super().__init__(http, scheduler)
        self.proxmox = proxmox

    @property
    def _headers(self) -> Dict[str, str]:
        secret = self.proxmox.api_key or self.proxmox.password
        return {"Authorization": f"PVEAPIToken={self.proxmox.username}={secret}"}

    async def _data(self, path: str) -> Any:
        body = await self.http.get_json(
            "Proxmox", f"{self.proxmox.base_url}/api2/json{path}", headers=self._headers
        )
        return (body or {}).get("data")

    async def fetch_status(self) -> ServiceSnapshot:
        if not self.proxmox.url or not self.proxmox.username or not (self.proxmox.api_key or self.proxmox.password):
            raise IntegrationNotConfiguredError("Proxmox")

        nodes_raw, vms_raw = await asyncio.gather(
            self._data("/nodes"),
            self._data("/cluster/resources?type=vm"),
        )
        nodes_raw = nodes_raw or []
        vms_raw = vms_raw or []

        nodes = await asyncio.gather(*(self._node(n) for n in nodes_raw))
        vms = [
            {
                "id": vm.get("vmid"),
                "name": vm.get("name", "?"),
                "status": vm.get("status", "unknown"),
                "node": vm.get("node"),
                "type": vm.get("type", "qemu"),
            }
            for vm in vms_raw
        ]

        return self.snapshot(
            {
                "nodes": list(nodes),
                "vms": vms,
                "summary": {
                    "total_nodes": len(nodes),
                    "online_nodes": sum(1 for n in nodes if n["status"] == "online"),
                    "total_vms": len(vms),
                    "running_vms": sum(1 for v in vms if v["status"] == "running"),
                },
            }
        )

    async def _node(self, node: Dict[str, Any]) -> Dict[str, Any]:
        name = node.get("node", "?")
        entry: Dict[str, Any] = {
            "name": name,
            "status": node.get("status", "unknown"),
            "cpu_percent": None,
            "memory_percent": None,
            "disk_percent": None,
            "uptime_seconds": node.get("uptime"),
        }
        if entry["status"] != "online":
            return entry

        # Per-node detail is best effort; the listing already proves reachability
        try:
            stats = await self._data(f"/nodes/{name}/status") or {}
        except Exception as e:
            logger.warning(
                "Proxmox node stats unavailable",
                extra={"node": name, "error": str(e), "error_type": type(e).__name__},
            )
            return entry

        memory = stats.get("memory") or {}
        rootfs = stats.get("rootfs") or {}
        cpu = stats.get("cpu")
        entry.update(
            cpu_percent=round(float(cpu) * 100, 1) if cpu is not None else None,
            memory_percent=percent(memory.get("used"), memory.get("total")),
            disk_percent=percent(rootfs.get("used"), rootfs.get("total")),
            uptime_seconds=stats.get("uptime", entry["uptime_seconds"]),
            cores=(stats.get("cpuinfo") or {}).get("cores"),
        )
        return entry


def node_for_presence(nodes: List[Dict[str, Any]], preferred: str) -> Dict[str, Any] | None:
    """Preferred node when it is online, else the first online node."""
    for node in nodes:
        if node.get("name") == preferred and node.get("status") == "online":
            return node
    return next((n for n in nodes if n.get("status") == "online"), None)
