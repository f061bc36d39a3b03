"""
Unit tests for ServiceContainer wiring.

Builds the whole service graph with fakes in place of Discord and upstreams.
"""

import pytest

from src.core.services.container import ServiceContainer
from src.modules.dashboard.settings import DASHBOARD_DOCUMENT
from src.modules.invite.repository import PENDING_INVITES_DOCUMENT
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.clients import StatusStack
from src.modules.status.models import Integration, ServiceSnapshot
from src.ui.dashboard import DashboardPayload
from tests.conftest import NOW, docker_payload


@pytest.fixture
def container(config, scheduler, memory_store, catalogue, transport, notifier):
    async def docker():
        return ServiceSnapshot.online(Integration.DOCKER, docker_payload(), scheduler.now())

    stack = StatusStack(caches=[ServiceStatusCache(Integration.DOCKER, docker, ttl=15, scheduler=scheduler)])
    return ServiceContainer(
        config,
        scheduler=scheduler,
        store=memory_store,
        catalogue=catalogue,
        transport=transport,
        notifier=notifier,
        status_stack=stack,
    )


class TestServiceContainer:
    async def test_initialize_and_refresh(self, container, scheduler, transport, memory_store):
        memory_store.documents[DASHBOARD_DOCUMENT] = {"channelId": "42", "enabledServices": "all"}

        await container.initialize()
        container.start_dashboard_refresh()
        await scheduler.advance(container.config.dashboard_startup_delay)

        assert container.initialized
        assert container.dashboard_settings.channel_id == 42
        assert transport.created[0][0] == 42
        assert isinstance(transport.created[0][2], DashboardPayload)

        await scheduler.advance(container.config.dashboard_refresh_interval)
        assert len(transport.edited) == 1

        await container.shutdown()
        assert not container.initialized

    async def test_pending_invites_restored(self, container, memory_store):
        memory_store.documents[PENDING_INVITES_DOCUMENT] = {
            "7": {
                "userId": "7",
                "name": "Alice",
                "service": "plex",
                "message": "",
                "timestamp": int((NOW - 3600) * 1000),
            }
        }

        await container.initialize()

        assert container.invites.is_pending(7)
        await container.shutdown()

    async def test_initialize_twice_is_noop(self, container):
        await container.initialize()
        dashboard = container.dashboard

        await container.initialize()

        assert container.dashboard is dashboard
        await container.shutdown()

    async def test_needs_client_without_fakes(self, config, scheduler, memory_store, catalogue):
        container = ServiceContainer(config, scheduler=scheduler, store=memory_store, catalogue=catalogue)

        with pytest.raises(RuntimeError):
            await container.initialize()
