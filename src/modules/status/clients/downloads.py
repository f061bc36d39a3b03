"""Download client status (qBittorrent and NZBGet)."""

from __future__ import annotations

from typing import Any, Dict

from src.core.config.config import ServiceEndpoint
from src.core.exceptions import UpstreamResponseError
from src.core.http import UpstreamHttp
from src.core.scheduler.base import Scheduler
from src.modules.status.clients.base import StatusClient, raise_if_all_failed, settle_apps
from src.modules.status.models import Integration, ServiceSnapshot

SEEDING_STATES = frozenset({"stalledDL", "uploading"})
PAUSED_STATES = frozenset({"pausedDL", "pausedUP"})
MAX_LISTED_TORRENTS = 5
MB = 1024 * 1024


class DownloadsClient(StatusClient):
    integration = Integration.DOWNLOADS

    def __init__(
        self,
        http: UpstreamHttp,
        scheduler: Scheduler,
        qbittorrent: ServiceEndpoint,
        nzbget: ServiceEndpoint,
    ) -> None:
        super().__init__(http, scheduler)
        self.qbittorrent = qbittorrent
        self.nzbget = nzbget

    async def fetch_status(self) -> ServiceSnapshot:
        apps = await settle_apps({"qbittorrent": self._qbittorrent, "nzbget": self._nzbget})
        raise_if_all_failed("Download clients", apps)
        return self.snapshot(apps)

    async def _qbittorrent(self) -> Dict[str, Any]:
        endpoint = self.qbittorrent
        self.require(endpoint, "username", "password")

        login = await self.http.request(
            "qBittorrent",
            "POST",
            f"{endpoint.base_url}/api/v2/auth/login",
            data={"username": endpoint.username, "password": endpoint.password},
        )
        if login.text.strip() != "Ok.":
            raise UpstreamResponseError("qBittorrent", "authentication failed", login.status_code)

        torrents = await self.http.get_json(
            "qBittorrent",
            f"{endpoint.base_url}/api/v2/torrents/info",
            headers={"Cookie": "; ".join(f"{k}={v}" for k, v in login.cookies.items())},
        )
        torrents = torrents or []
        downloading = [t for t in torrents if t.get("state") == "downloading"]

        speed = sum(t.get("dlspeed") or 0 for t in downloading)
        size = sum(t.get("size") or 0 for t in downloading)
        done = sum(t.get("completed") or 0 for t in downloading)
        eta = round((size - done) / speed) if speed > 0 and size > done else 0

        return {
            "total": len(torrents),
            "downloading": len(downloading),
            "seeding": sum(1 for t in torrents if t.get("state") in SEEDING_STATES),
            "paused": sum(1 for t in torrents if t.get("state") in PAUSED_STATES),
            "speed_bytes": speed,
            "eta_seconds": eta,
            "torrents": [
                {
                    "name": t.get("name", "?"),
                    "size_bytes": t.get("size") or 0,
                    "progress": round((t.get("completed") or 0) / t["size"] * 100) if t.get("size") else 0,
                    "speed_bytes": t.get("dlspeed") or 0,
                }
                for t in downloading[:MAX_LISTED_TORRENTS]
            ],
        }

    async def _nzbget(self) -> Dict[str, Any]:
        endpoint = self.nzbget
        self.require(endpoint, "username", "password")

        body = await self.http.post_json(
            "NZBGet",
            f"{endpoint.base_url}/jsonrpc",
            json={"method": "status", "params": []},
            auth=(endpoint.username, endpoint.password),
        )
        status = (body or {}).get("result") or {}
        remaining = (status.get("RemainingSizeMB") or 0) * MB
        rate = (status.get("DownloadRate") or 0) * 1024

        return {
            "downloading": remaining > 0,
            "remaining_bytes": remaining,
            "downloaded_bytes": (status.get("DownloadedSizeMB") or 0) * MB,
            "speed_bytes": rate,
            "eta_seconds": round(remaining / rate) if remaining > 0 and rate > 0 else 0,
        }
