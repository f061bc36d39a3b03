"""
Unit tests for DashboardAggregator.

Tests that every integration appears in the composite and that one failing
integration never hides the others.
"""

from src.core.exceptions import IntegrationNotConfiguredError, UpstreamUnavailableError
from src.modules.presence.rotator import compose_presence
from src.modules.status.aggregator import DashboardAggregator
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.models import Integration, ServiceSnapshot, ServiceStatus
from tests.conftest import media_payload


def cache_for(integration, scheduler, fetch, ttl=30):
    return ServiceStatusCache(integration, fetch, ttl=ttl, scheduler=scheduler)


class TestAggregation:
    async def test_mixed_health_composite(self, scheduler):
        """Online, offline and disabled integrations all land in the composite."""

        async def media():
            return ServiceSnapshot.online(Integration.MEDIA, media_payload(3, 0), scheduler.now())

        async def cluster():
            raise UpstreamUnavailableError("Proxmox", "connection failed (ConnectError)")

        async def docker():
            raise IntegrationNotConfiguredError("Docker socket")

        aggregator = DashboardAggregator(
            [
                cache_for(Integration.MEDIA, scheduler, media),
                cache_for(Integration.CLUSTER, scheduler, cluster),
                cache_for(Integration.DOCKER, scheduler, docker),
            ],
            scheduler,
        )
        snapshot = await aggregator.aggregate()

        assert len(snapshot) == 3
        assert snapshot.get(Integration.MEDIA).is_online
        assert snapshot.get(Integration.MEDIA).get("total_streams") == 3

        cluster_entry = snapshot.get(Integration.CLUSTER)
        assert cluster_entry.status is ServiceStatus.OFFLINE
        assert "connection failed" in cluster_entry.message

        docker_entry = snapshot.get(Integration.DOCKER)
        assert docker_entry.status is ServiceStatus.DISABLED
        assert docker_entry.message

        # Presence only uses the healthy integration
        frame = compose_presence(snapshot, 0)
        assert frame.text == "👥 3 watching"
        assert "CPU" not in frame.text
        assert "containers" not in frame.text

    async def test_cache_raising_past_boundary_is_contained(self, scheduler, mocker):
        async def media():
            return ServiceSnapshot.online(Integration.MEDIA, media_payload(), scheduler.now())

        broken = cache_for(Integration.DOCKER, scheduler, media)
        mocker.patch.object(broken, "get", side_effect=RuntimeError("cache bug"))

        aggregator = DashboardAggregator([cache_for(Integration.MEDIA, scheduler, media), broken], scheduler)
        snapshot = await aggregator.aggregate()

        assert snapshot.get(Integration.MEDIA).is_online
        assert snapshot.get(Integration.DOCKER).status is ServiceStatus.ERROR
        assert snapshot.get(Integration.DOCKER).message == "cache bug"

    async def test_last_snapshot_recorded(self, scheduler):
        async def media():
            return ServiceSnapshot.online(Integration.MEDIA, media_payload(), scheduler.now())

        aggregator = DashboardAggregator([cache_for(Integration.MEDIA, scheduler, media)], scheduler)
        assert aggregator.last_snapshot is None

        snapshot = await aggregator.aggregate()

        assert aggregator.last_snapshot is snapshot
        assert snapshot.summary() == {"media": "online"}

    async def test_caches_queried_once_within_ttl(self, scheduler):
        calls = 0

        async def media():
            nonlocal calls
            calls += 1
            return ServiceSnapshot.online(Integration.MEDIA, media_payload(), scheduler.now())

        aggregator = DashboardAggregator([cache_for(Integration.MEDIA, scheduler, media, ttl=20)], scheduler)
        await aggregator.aggregate()
        await scheduler.advance(10)
        await aggregator.aggregate()
        await scheduler.advance(10)
        await aggregator.aggregate()

        assert calls == 2
