"""
Unit tests for DashboardPublisher.

Tests the post/edit state machine, channel reassignment, transport failure
handling and the no-overlap guard.
"""

import asyncio

import pytest

from src.core.exceptions import TransportError
from src.modules.dashboard.publisher import DashboardPublisher, PublisherState, TickOutcome
from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.shared.exceptions import DashboardChannelNotConfiguredError
from src.modules.status.aggregator import DashboardAggregator
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.models import Integration, ServiceSnapshot
from tests.conftest import docker_payload


class Channel:
    """Mutable holder standing in for the settings service."""

    def __init__(self, channel_id=None):
        self.channel_id = channel_id

    async def set(self, channel_id):
        self.channel_id = channel_id


@pytest.fixture
def aggregator(scheduler):
    async def docker():
        return ServiceSnapshot.online(Integration.DOCKER, docker_payload(), scheduler.now())

    cache = ServiceStatusCache(Integration.DOCKER, docker, ttl=15, scheduler=scheduler)
    return DashboardAggregator([cache], scheduler)


@pytest.fixture
def channel():
    return Channel()


@pytest.fixture
def publisher(aggregator, transport, channel, scheduler):
    return DashboardPublisher(
        name="dashboard",
        aggregator=aggregator,
        transport=transport,
        renderer=lambda snapshot, selection: {"snapshot": snapshot, "selection": selection},
        channel_provider=lambda: channel.channel_id,
        selection_provider=EnabledServiceSelection.all,
        scheduler=scheduler,
        channel_setter=channel.set,
    )


class TestTicks:
    async def test_idle_without_channel(self, publisher, transport):
        assert await publisher.tick() is TickOutcome.IDLE
        assert transport.created == []

    async def test_first_tick_posts_then_edits(self, publisher, transport, channel):
        channel.channel_id = 42

        assert await publisher.tick() is TickOutcome.POSTED
        assert await publisher.tick() is TickOutcome.EDITED
        assert await publisher.tick() is TickOutcome.EDITED

        assert len(transport.created) == 1
        message_id = transport.created[0][1]
        assert [(c, m) for c, m, _ in transport.edited] == [(42, message_id), (42, message_id)]
        assert publisher.state is PublisherState.POSTED

    async def test_message_gone_reposts_next_tick(self, publisher, transport, channel):
        channel.channel_id = 42
        await publisher.tick()
        transport.gone.add(publisher.posted.message_id)

        assert await publisher.tick() is TickOutcome.MESSAGE_GONE
        assert publisher.state is PublisherState.NO_MESSAGE
        assert await publisher.tick() is TickOutcome.POSTED
        assert len(transport.created) == 2

    async def test_transient_edit_failure_keeps_message(self, publisher, transport, channel):
        channel.channel_id = 42
        await publisher.tick()
        posted = publisher.posted
        transport.fail_edit = TransportError("503 Service Unavailable")

        assert await publisher.tick() is TickOutcome.FAILED
        assert publisher.posted == posted
        assert await publisher.tick() is TickOutcome.EDITED
        assert len(transport.created) == 1

    async def test_create_failure_retried_next_tick(self, publisher, transport, channel):
        channel.channel_id = 42
        transport.fail_create = TransportError("Missing Access")

        assert await publisher.tick() is TickOutcome.FAILED
        assert publisher.posted is None
        assert await publisher.tick() is TickOutcome.POSTED

    async def test_cleared_channel_forgets_message(self, publisher, transport, channel):
        channel.channel_id = 42
        await publisher.tick()
        channel.channel_id = None

        assert await publisher.tick() is TickOutcome.CLEARED
        assert publisher.posted is None
        assert transport.deleted == []


class TestReassign:
    async def test_reassign_abandons_old_message(self, publisher, transport, channel):
        """Channel Y has a board; moving to X posts in X and only X is edited afterwards."""
        channel.channel_id = 7
        await publisher.tick()
        old_message_id = publisher.posted.message_id

        posted = await publisher.reassign(42)

        assert channel.channel_id == 42
        assert posted.channel_id == 42
        assert transport.deleted == []

        transport.edited.clear()
        await publisher.tick()
        await publisher.tick()

        assert {c for c, _, _ in transport.edited} == {42}
        assert all(m == posted.message_id for _, m, _ in transport.edited)
        assert old_message_id not in {m for _, m, _ in transport.edited}

    async def test_post_requires_channel(self, publisher):
        with pytest.raises(DashboardChannelNotConfiguredError):
            await publisher.post()


class TestOverlap:
    async def test_tick_skipped_while_refresh_in_progress(self, scheduler, transport, channel):
        gate = asyncio.Event()

        async def slow_docker():
            await gate.wait()
            return ServiceSnapshot.online(Integration.DOCKER, docker_payload(), scheduler.now())

        aggregator = DashboardAggregator(
            [ServiceStatusCache(Integration.DOCKER, slow_docker, ttl=15, scheduler=scheduler)], scheduler
        )
        publisher = DashboardPublisher(
            name="dashboard",
            aggregator=aggregator,
            transport=transport,
            renderer=lambda snapshot, selection: snapshot,
            channel_provider=lambda: 42,
            selection_provider=EnabledServiceSelection.all,
            scheduler=scheduler,
        )

        first = asyncio.create_task(publisher.tick())
        await asyncio.sleep(0)
        assert publisher.refreshing

        second = await publisher.tick()
        gate.set()

        assert second is TickOutcome.SKIPPED
        assert await first is TickOutcome.POSTED
        assert publisher.ticks_skipped == 1
        assert len(transport.created) == 1
