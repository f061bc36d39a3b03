"""
Unit tests for LiveUpdateService.

The live board runs on its own timer next to the configured dashboard.
"""

import pytest

from src.core.exceptions import TransportError
from src.core.logging.logger import get_logger
from src.modules.dashboard.live import LiveUpdateService
from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.shared.exceptions import LiveUpdatesAlreadyRunningError, LiveUpdatesNotRunningError
from src.modules.status.aggregator import DashboardAggregator
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.models import Integration, ServiceSnapshot
from tests.conftest import docker_payload


@pytest.fixture
def live(config, scheduler, transport):
    async def docker():
        return ServiceSnapshot.online(Integration.DOCKER, docker_payload(), scheduler.now())

    aggregator = DashboardAggregator(
        [ServiceStatusCache(Integration.DOCKER, docker, ttl=15, scheduler=scheduler)], scheduler
    )
    return LiveUpdateService(
        config,
        aggregator,
        transport,
        renderer=lambda snapshot, selection: snapshot,
        selection_provider=EnabledServiceSelection.all,
        scheduler=scheduler,
        logger=get_logger("tests.live"),
    )


class TestLiveUpdates:
    async def test_start_posts_and_refreshes(self, live, transport, scheduler):
        posted = await live.start(77)

        assert live.is_running
        assert transport.created[0][:2] == (77, posted.message_id)

        await scheduler.advance(live.interval * 2)

        assert len(transport.edited) == 2
        assert {m for _, m, _ in transport.edited} == {posted.message_id}

    async def test_second_start_rejected(self, live):
        await live.start(77)

        with pytest.raises(LiveUpdatesAlreadyRunningError):
            await live.start(78)

    async def test_stop_leaves_message(self, live, transport, scheduler):
        posted = await live.start(77)

        last = live.stop()
        await scheduler.advance(live.interval * 3)

        assert last == posted
        assert not live.is_running
        assert transport.edited == []
        assert transport.deleted == []

    async def test_stop_when_idle(self, live):
        with pytest.raises(LiveUpdatesNotRunningError):
            live.stop()

    async def test_failed_first_post_starts_nothing(self, live, transport):
        transport.fail_create = TransportError("Missing Access")

        with pytest.raises(TransportError):
            await live.start(77)

        assert not live.is_running
        assert live.channel_id is None
        await live.start(77)
        assert live.is_running
