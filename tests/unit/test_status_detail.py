"""
Unit tests for the per-integration detail embeds.
"""

from src.core.config.catalogue import CatalogueEntry
from src.modules.status.models import Integration, ServiceSnapshot
from src.ui.status_detail import (
    MAX_LISTED_CONTAINERS,
    arr_detail_embed,
    docker_detail_embed,
    links_embed,
    media_detail_embed,
    server_detail_embed,
)
from src.ui.themes import EmbedColor
from tests.conftest import NOW, cluster_payload, docker_payload, media_payload


def field(embed, prefix):
    return next(f for f in embed.fields if prefix in f.name)


def container(name, state="running"):
    return {"name": name, "state": state, "status": "Up 2 hours" if state == "running" else "Exited (0)", "image": f"{name}:latest"}


class TestServerDetail:
    def test_offline_preferred_node_falls_back(self):
        payload = cluster_payload(name="pve")
        payload["nodes"][0]["status"] = "offline"
        payload["nodes"].append(cluster_payload(cpu=33.0, name="node2")["nodes"][0])
        cluster = ServiceSnapshot.online(Integration.CLUSTER, payload, NOW)

        embed = server_detail_embed(cluster, preferred_node="pve")

        assert "node2" in embed.fields[0].name
        assert "33.0%" in embed.fields[0].value
        others = field(embed, "Other Nodes").value
        assert "**pve**" in others
        assert "CPU" not in others
        assert "docker-host" in field(embed, "Guests").value

    def test_single_stat(self):
        cluster = ServiceSnapshot.online(Integration.CLUSTER, cluster_payload(memory=40.0), NOW)

        embed = server_detail_embed(cluster, stat="memory")

        assert len(embed.fields) == 1
        assert embed.fields[0].value.startswith("RAM:")
        assert "40.0%" in embed.fields[0].value

    def test_unavailable_cluster(self):
        cluster = ServiceSnapshot.offline(Integration.CLUSTER, "Proxmox: connection failed", NOW)

        embed = server_detail_embed(cluster)

        assert "Proxmox: connection failed" in embed.description
        assert embed.color.value == EmbedColor.WARNING
        assert embed.fields == []


class TestDockerDetail:
    def test_containers_grouped_by_state(self):
        payload = docker_payload(2, 3)
        payload["containers"] = [container("web"), container("old", "exited"), container("db")]
        docker = ServiceSnapshot.online(Integration.DOCKER, payload, NOW)

        embed = docker_detail_embed(docker)

        running = field(embed, "Running").value
        assert running.index("`db`") < running.index("`web`")
        assert "`old`" in field(embed, "Not Running").value
        assert "**2** running" in embed.description

    def test_long_list_truncated(self):
        count = MAX_LISTED_CONTAINERS + 5
        payload = docker_payload(count, count)
        payload["containers"] = [container(f"svc{i:02d}") for i in range(count)]

        embed = docker_detail_embed(ServiceSnapshot.online(Integration.DOCKER, payload, NOW))

        assert field(embed, "Running").value.endswith("...and 5 more")

    def test_not_polled(self):
        assert "not polled yet" in docker_detail_embed(None).description


class TestMediaDetail:
    def media(self):
        payload = media_payload(1, 0)
        payload["jellyfin"]["sessions"] = [
            {"user": "bob", "title": "Pilot", "series": "Show", "episode": "Pilot", "progress": 50.0, "device": "TV"}
        ]
        return ServiceSnapshot.online(Integration.MEDIA, payload, NOW)

    def test_sessions_listed(self):
        embed = media_detail_embed(self.media(), None)

        assert "**bob**: Show - Pilot (50%) on TV" in field(embed, "Jellyfin").value
        assert "Nothing playing" in field(embed, "Plex").value
        assert "**1** person watching" in embed.description
        assert "not polled yet" in field(embed, "qBittorrent").value

    def test_single_source(self):
        embed = media_detail_embed(self.media(), None, kind="plex")

        assert [f.name for f in embed.fields] == ["🟠 Plex"]

    def test_download_client_failure(self):
        downloads = ServiceSnapshot.online(
            Integration.DOWNLOADS,
            {
                "qbittorrent": {"status": "offline", "message": "qBittorrent: connection failed"},
                "nzbget": {"status": "online", "downloading": False, "downloaded_bytes": 0},
            },
            NOW,
        )

        embed = media_detail_embed(None, downloads, kind="all")

        assert "qBittorrent: connection failed" in field(embed, "qBittorrent").value
        assert field(embed, "NZBGet").value.startswith("Idle")
        assert embed.description is None


class TestArrDetail:
    def arr(self):
        return ServiceSnapshot.online(
            Integration.ARR,
            {
                "sonarr": {"status": "online", "version": "4.0", "queued": 2, "upcoming": 5, "failed": 1},
                "prowlarr": {"status": "online", "version": "1.1", "active_indexers": 3, "total_indexers": 4},
                "radarr": {"status": "offline", "message": "Radarr: connection failed"},
            },
            NOW,
        )

    def test_all_apps(self):
        embed = arr_detail_embed(self.arr())

        sonarr = field(embed, "Sonarr").value
        assert "v4.0" in sonarr
        assert "Queue: 2 • Failed: 1" in sonarr
        assert "Upcoming (7 days): 5" in sonarr
        assert "Indexers: 3/4 healthy" in field(embed, "Prowlarr").value
        assert "Radarr: connection failed" in field(embed, "Radarr").value

    def test_single_app(self):
        embed = arr_detail_embed(self.arr(), app="prowlarr")

        assert len(embed.fields) == 1

    def test_app_without_data(self):
        embed = arr_detail_embed(self.arr(), app="lidarr")

        assert embed.fields == []
        assert "No data for **Lidarr**" in embed.description


class TestLinks:
    def test_lists_entries(self):
        embed = links_embed([CatalogueEntry("plex", "Plex", "🎭", "https://plex.test")])

        assert embed.description == "🎭 [Plex](https://plex.test)"

    def test_empty(self):
        assert links_embed([]).description == "No quick links are enabled."
