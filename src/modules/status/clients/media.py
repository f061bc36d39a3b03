"""Media server client (Jellyfin and Plex)."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from src.core.config.config import ServiceEndpoint
from src.core.http import UpstreamHttp
from src.core.scheduler.base import Scheduler
from src.modules.status.clients.base import StatusClient, percent, raise_if_all_failed, settle_apps
from src.modules.status.models import Integration, ServiceSnapshot


class MediaClient(StatusClient):
    integration = Integration.MEDIA

    def __init__(
        self,
        http: UpstreamHttp,
        scheduler: Scheduler,
        jellyfin: ServiceEndpoint,
        plex: ServiceEndpoint,
    ) -> None:
        super().__init__(http, scheduler)
        self.jellyfin = jellyfin
        self.plex = plex

    async def fetch_status(self) -> ServiceSnapshot:
        apps = await settle_apps({"jellyfin": self._jellyfin, "plex": self._plex})
        raise_if_all_failed("Media servers", apps)
        total = sum(app.get("active_streams", 0) for app in apps.values() if app["status"] == "online")
        return self.snapshot({**apps, "total_streams": total})

    # ========================================================================
    # Jellyfin
    # ========================================================================

    async def _jellyfin(self) -> Dict[str, Any]:
        self.require(self.jellyfin, "api_key")
        headers = {"X-Emby-Token": self.jellyfin.api_key}
        sessions, info = await asyncio.gather(
            self.http.get_json("Jellyfin", f"{self.jellyfin.base_url}/Sessions", headers=headers),
            self.http.get_json("Jellyfin", f"{self.jellyfin.base_url}/System/Info", headers=headers),
        )

        active = [
            s for s in sessions or []
            if s.get("NowPlayingItem") and s.get("PlayState") and not s["PlayState"].get("IsPaused")
        ]
        return {
            "version": (info or {}).get("Version", "unknown"),
            "active_streams": len(active),
            "sessions": [self._jellyfin_session(s) for s in active],
        }

    @staticmethod
    def _jellyfin_session(session: Dict[str, Any]) -> Dict[str, Any]:
        item = session["NowPlayingItem"]
        return {
            "user": session.get("UserName", "Unknown"),
            "title": item.get("Name", "Unknown"),
            "series": item.get("SeriesName"),
            "episode": item.get("EpisodeTitle"),
            "progress": percent(session["PlayState"].get("PositionTicks"), item.get("RunTimeTicks")),
            "device": session.get("DeviceName"),
        }

    # ========================================================================
    # Plex
    # ========================================================================

    async def _plex(self) -> Dict[str, Any]:
        self.require(self.plex, "api_key")
        headers = {"X-Plex-Token": self.plex.api_key, "Accept": "application/json"}
        sessions, info = await asyncio.gather(
            self.http.get_json("Plex", f"{self.plex.base_url}/status/sessions", headers=headers),
            self.http.get_json("Plex", f"{self.plex.base_url}/", headers=headers),
        )

        metadata: List[Dict[str, Any]] = ((sessions or {}).get("MediaContainer") or {}).get("Metadata") or []
        return {
            "version": ((info or {}).get("MediaContainer") or {}).get("version", "unknown"),
            "active_streams": len(metadata),
            "sessions": [
                {
                    "user": (m.get("User") or {}).get("title", "Unknown"),
                    "title": m.get("title", "Unknown"),
                    "series": m.get("grandparentTitle"),
                    "episode": m.get("title"),
                    "progress": percent(m.get("viewOffset"), m.get("duration")),
                    "device": (m.get("Player") or {}).get("device"),
                }
                for m in metadata
            ],
        }
