"""
Unit tests for presence composition, rotation and the refresh loop.
"""

import pytest

from src.core.exceptions import TransportError
from src.core.logging.logger import get_logger
from src.modules.presence.rotator import DEFAULT_PRESENCE, PresenceRotator, compose_presence
from src.modules.presence.service import PresenceService
from src.modules.status.aggregator import DashboardAggregator
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.models import Integration, ServiceSnapshot
from tests.conftest import NOW, cluster_payload, docker_payload, make_snapshot, media_payload


class TestComposePresence:
    def test_no_snapshot_uses_default(self):
        assert compose_presence(None, 3).text == DEFAULT_PRESENCE

    def test_rotates_through_node_metrics(self, healthy_snapshot):
        texts = []
        index = 0
        for _ in range(4):
            frame = compose_presence(healthy_snapshot, index)
            texts.append(frame.text)
            index = frame.next_index

        assert texts == [
            "👥 3 watching | CPU: 12.5%",
            "👥 3 watching | RAM: 40.0%",
            "👥 3 watching | Disk: 63.2%",
            "👥 3 watching | CPU: 12.5%",
        ]

    def test_index_wraps_when_metrics_shrink(self):
        snapshot = make_snapshot(ServiceSnapshot.online(Integration.DOCKER, docker_payload(7, 9), NOW))

        frame = compose_presence(snapshot, 2)

        assert frame.text == "🐳 7/9 containers"
        assert frame.next_index == 0

    def test_offline_media_omits_viewers(self):
        snapshot = make_snapshot(
            ServiceSnapshot.offline(Integration.MEDIA, "connection failed", NOW),
            ServiceSnapshot.online(Integration.CLUSTER, cluster_payload(cpu=5.0), NOW),
        )

        assert compose_presence(snapshot, 0).text == "CPU: 5.0%"

    def test_preferred_node_falls_back_to_first_online(self):
        snapshot = make_snapshot(ServiceSnapshot.online(Integration.CLUSTER, cluster_payload(name="node2"), NOW))

        assert compose_presence(snapshot, 0, preferred_node="pve").text == "CPU: 12.5%"

    def test_offline_preferred_node_skipped(self):
        payload = cluster_payload(name="pve")
        payload["nodes"][0]["status"] = "offline"
        payload["nodes"].append(cluster_payload(cpu=33.0, name="node2")["nodes"][0])
        snapshot = make_snapshot(ServiceSnapshot.online(Integration.CLUSTER, payload, NOW))

        assert compose_presence(snapshot, 0, preferred_node="pve").text == "CPU: 33.0%"

    def test_nothing_healthy(self):
        snapshot = make_snapshot(ServiceSnapshot.offline(Integration.DOCKER, "down", NOW))

        assert compose_presence(snapshot, 0).text == DEFAULT_PRESENCE


class TestPresenceRotator:
    def test_repeated_text_suppressed(self):
        snapshot = make_snapshot(ServiceSnapshot.online(Integration.MEDIA, media_payload(1, 0), NOW))
        rotator = PresenceRotator()

        text = rotator.next_update(snapshot)
        rotator.mark_pushed(text)

        assert text == "👥 1 watching"
        assert rotator.next_update(snapshot) is None


@pytest.fixture
def presence(config, scheduler):
    async def media():
        return ServiceSnapshot.online(Integration.MEDIA, media_payload(2, 0), scheduler.now())

    aggregator = DashboardAggregator(
        [ServiceStatusCache(Integration.MEDIA, media, ttl=20, scheduler=scheduler)], scheduler
    )
    return PresenceService(config, aggregator, scheduler, get_logger("tests.presence"))


class TestPresenceService:
    async def test_pushes_only_changes(self, presence, mocker):
        push = mocker.AsyncMock()
        presence.start(push)

        assert await presence.tick() == "👥 2 watching"
        assert await presence.tick() is None
        push.assert_awaited_once_with("👥 2 watching")

    async def test_failed_push_retried(self, presence, mocker):
        push = mocker.AsyncMock(side_effect=[TransportError("rate limited"), None])
        presence.start(push)

        assert await presence.tick() is None
        assert await presence.tick() == "👥 2 watching"
        assert push.await_count == 2

    async def test_runs_on_interval(self, presence, scheduler, mocker):
        push = mocker.AsyncMock()
        presence.start(push)
        presence.start(push)

        await scheduler.advance(presence.interval * 2)

        assert presence.is_running
        assert scheduler.fired.count("presence") == 3
        push.assert_awaited_once()

        presence.stop()
        assert not presence.is_running

    async def test_tick_before_start_is_noop(self, presence):
        assert await presence.tick() is None
