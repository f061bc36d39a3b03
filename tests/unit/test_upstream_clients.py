"""
Unit tests for upstream clients.

HTTP is served by `httpx.MockTransport` handlers; no network access.
"""

from datetime import timedelta

import httpx
import pytest

from src.core.config.config import ServiceEndpoint
from src.core.exceptions import (
    IntegrationNotConfiguredError,
    UpstreamError,
    UpstreamResponseError,
    UpstreamUnavailableError,
)
from src.core.http import UpstreamHttp
from src.modules.invite.models import MediaService
from src.modules.invite.wizarr import WizarrClient
from src.modules.status.clients.arr import ArrClient
from src.modules.status.clients.base import raise_if_all_failed, settle_apps
from src.modules.status.clients.media import MediaClient


def http_for(handler):
    return UpstreamHttp(timeout=5, transport=httpx.MockTransport(handler))


WIZARR = ServiceEndpoint("wizarr", url="https://wizarr.test/", api_key="secret")
SERVER_IDS = {MediaService.PLEX: 2, MediaService.JELLYFIN: 1}


def wizarr_client(handler, scheduler, endpoint=WIZARR):
    return WizarrClient(endpoint, http_for(handler), scheduler, SERVER_IDS, timedelta(days=2))


class TestUpstreamHttp:
    async def test_error_status_raises_response_error(self):
        http = http_for(lambda request: httpx.Response(503))

        with pytest.raises(UpstreamResponseError) as exc_info:
            await http.get_json("Radarr", "http://radarr.test/api")

        assert exc_info.value.status_code == 503
        await http.aclose()

    async def test_connect_error_raises_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        http = http_for(handler)

        with pytest.raises(UpstreamUnavailableError, match="ConnectError"):
            await http.get_json("Radarr", "http://radarr.test/api")
        await http.aclose()

    async def test_invalid_json(self):
        http = http_for(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(UpstreamResponseError, match="JSON"):
            await http.get_json("Radarr", "http://radarr.test/api")
        await http.aclose()


class TestWizarrClient:
    async def test_creates_invitation(self, scheduler):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["X-API-Key"]
            seen["body"] = request.content
            return httpx.Response(
                201, json={"invitation": {"code": "abc123", "url": "https://wizarr.test/j/abc123"}}
            )

        invite = await wizarr_client(handler, scheduler).create_invite("Alice", "plex")

        assert invite.code == "abc123"
        assert invite.url == "https://wizarr.test/j/abc123"
        assert seen["url"] == "https://wizarr.test/api/invitations"
        assert seen["key"] == "secret"
        assert b'"server_ids":[2]' in seen["body"].replace(b" ", b"")

    async def test_url_built_from_code_when_missing(self, scheduler):
        client = wizarr_client(lambda r: httpx.Response(200, json={"invitation": {"code": "xyz"}}), scheduler)

        invite = await client.create_invite("Bob", MediaService.JELLYFIN)

        assert invite.url == "https://wizarr.test/j/xyz"
        assert invite.expires_at

    async def test_missing_invitation_rejected(self, scheduler):
        client = wizarr_client(lambda r: httpx.Response(200, json={"ok": True}), scheduler)

        with pytest.raises(UpstreamResponseError):
            await client.create_invite("Bob", "plex")

    async def test_not_configured(self, scheduler):
        client = wizarr_client(lambda r: httpx.Response(200), scheduler, endpoint=ServiceEndpoint("wizarr"))

        with pytest.raises(IntegrationNotConfiguredError):
            await client.create_invite("Bob", "plex")

    async def test_server_error(self, scheduler):
        client = wizarr_client(lambda r: httpx.Response(500), scheduler)

        with pytest.raises(UpstreamResponseError):
            await client.create_invite("Bob", "plex")


class TestSettledApps:
    async def test_failures_become_entries(self):
        async def ok():
            return {"version": "1"}

        async def down():
            raise UpstreamUnavailableError("Sonarr", "connection failed")

        async def missing():
            raise IntegrationNotConfiguredError("Lidarr")

        apps = await settle_apps({"radarr": ok, "sonarr": down, "lidarr": missing})

        assert apps["radarr"] == {"status": "online", "version": "1"}
        assert apps["sonarr"]["status"] == "offline"
        assert apps["lidarr"]["status"] == "disabled"
        raise_if_all_failed("ARR stack", apps)

    @pytest.mark.parametrize(
        "statuses, expected",
        [
            (["disabled", "disabled"], IntegrationNotConfiguredError),
            (["offline", "disabled"], UpstreamUnavailableError),
            (["error", "offline"], UpstreamError),
        ],
    )
    def test_all_failed_escalates(self, statuses, expected):
        apps = {f"app{i}": {"status": s, "message": s} for i, s in enumerate(statuses)}

        with pytest.raises(expected):
            raise_if_all_failed("ARR stack", apps)


class TestMediaClient:
    async def test_one_server_down(self, scheduler):
        def handler(request):
            if request.url.host == "plex.test":
                raise httpx.ConnectError("refused", request=request)
            if request.url.path == "/Sessions":
                return httpx.Response(
                    200,
                    json=[
                        {
                            "UserName": "alice",
                            "NowPlayingItem": {"Name": "Film", "RunTimeTicks": 200},
                            "PlayState": {"PositionTicks": 50, "IsPaused": False},
                        },
                        {"UserName": "idle"},
                    ],
                )
            return httpx.Response(200, json={"Version": "10.9.0"})

        client = MediaClient(
            http_for(handler),
            scheduler,
            ServiceEndpoint("jellyfin", url="http://jellyfin.test", api_key="k"),
            ServiceEndpoint("plex", url="http://plex.test", api_key="t"),
        )
        snapshot = await client.fetch_status()

        assert snapshot.is_online
        assert snapshot.get("total_streams") == 1
        jellyfin = snapshot.get("jellyfin")
        assert jellyfin["sessions"][0]["progress"] == 25.0
        assert snapshot.get("plex")["status"] == "offline"

    async def test_nothing_configured(self, scheduler):
        client = MediaClient(
            http_for(lambda r: httpx.Response(200)),
            scheduler,
            ServiceEndpoint("jellyfin"),
            ServiceEndpoint("plex"),
        )

        with pytest.raises(IntegrationNotConfiguredError):
            await client.fetch_status()


class TestArrClient:
    async def test_queue_and_indexers(self, scheduler):
        def handler(request):
            path = request.url.path
            if path.endswith("/system/status"):
                return httpx.Response(200, json={"version": "5.0"})
            if path.endswith("/queue"):
                return httpx.Response(200, json={"records": [{"status": "downloading"}, {"status": "failed"}]})
            if path.endswith("/calendar"):
                return httpx.Response(200, json=[{}, {}, {}])
            if path.endswith("/indexer/status"):
                return httpx.Response(200, json=[{"status": "healthy"}, {"status": "failing"}])
            return httpx.Response(404)

        client = ArrClient(
            http_for(handler),
            scheduler,
            apps=((ServiceEndpoint("radarr", url="http://radarr.test", api_key="k"), "v3"),),
            prowlarr=ServiceEndpoint("prowlarr", url="http://prowlarr.test", api_key="k"),
        )
        snapshot = await client.fetch_status()

        radarr = snapshot.get("radarr")
        assert radarr["queued"] == 2
        assert radarr["failed"] == 1
        assert radarr["upcoming"] == 3
        assert snapshot.get("prowlarr")["active_indexers"] == 1
