"""
Unit tests for cog command bodies.

Cogs are built around a stub container; commands are invoked through their
callbacks with the mocked context from conftest.
"""

from types import SimpleNamespace

import pytest

from src.core.services.error_response_service import ErrorResponseService
from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.invite.cog import InviteCog
from src.modules.invite.models import MediaService
from src.modules.shared.exceptions import InviteAlreadyPendingError, ValidationError
from src.modules.status.aggregator import DashboardAggregator
from src.modules.status.cache import ServiceStatusCache
from src.modules.status.cog import StatusCog, parse_choice
from src.modules.status.models import Integration, ServiceSnapshot
from src.ui.status_detail import SERVER_STATS
from src.ui.views.links import QuickLinksView
from tests.conftest import docker_payload


@pytest.fixture
def docker_fetches():
    return []


@pytest.fixture
def status_cog(mock_bot, config, scheduler, catalogue, docker_fetches):
    async def docker():
        docker_fetches.append(scheduler.now())
        return ServiceSnapshot.online(Integration.DOCKER, docker_payload(), scheduler.now())

    container = SimpleNamespace(
        errors=ErrorResponseService(),
        config=config,
        catalogue=catalogue,
        aggregator=DashboardAggregator(
            [ServiceStatusCache(Integration.DOCKER, docker, ttl=15, scheduler=scheduler)], scheduler
        ),
        dashboard_settings=SimpleNamespace(selection=EnabledServiceSelection.all()),
    )
    return StatusCog(mock_bot, container)


def sent_embed(ctx):
    return ctx.reply.await_args.kwargs["embed"]


class TestStatusCog:
    async def test_docker_reads_through_cache(self, status_cog, mock_context, docker_fetches):
        await status_cog.docker.callback(status_cog, mock_context)
        await status_cog.docker.callback(status_cog, mock_context)

        assert len(docker_fetches) == 1
        assert "Docker Containers" in sent_embed(mock_context).title
        assert "**8** running" in sent_embed(mock_context).description

    async def test_missing_integration_renders_placeholder(self, status_cog, mock_context):
        assert await status_cog.snapshot(Integration.ARR) is None

        await status_cog.arr.callback(status_cog, mock_context, service="sonarr")

        assert "not polled yet" in sent_embed(mock_context).description

    async def test_invalid_prefix_option(self, status_cog, mock_context):
        with pytest.raises(ValidationError):
            await status_cog.server.callback(status_cog, mock_context, stat="network")

        mock_context.reply.assert_not_awaited()

    async def test_links_attach_buttons(self, status_cog, mock_context):
        await status_cog.links.callback(status_cog, mock_context)

        kwargs = mock_context.reply.await_args.kwargs
        assert isinstance(kwargs["view"], QuickLinksView)
        assert len(kwargs["view"].children) == 3
        assert "[Plex](https://plex.test)" in kwargs["embed"].description


@pytest.mark.parametrize(
    ("value", "expected"),
    [("all", "all"), ("CPU", "cpu"), (" disk ", "disk"), ("", "all")],
)
def test_parse_choice(value, expected):
    assert parse_choice(value, SERVER_STATS, "stat") == expected


@pytest.fixture
def invite_cog(mock_bot, mocker):
    container = SimpleNamespace(
        errors=ErrorResponseService(),
        invites=mocker.MagicMock(request_invite=mocker.AsyncMock()),
    )
    return InviteCog(mock_bot, container)


@pytest.fixture
def interaction(mocker):
    interaction = mocker.MagicMock()
    interaction.response.defer = mocker.AsyncMock()
    interaction.edit_original_response = mocker.AsyncMock()
    return interaction


class TestInviteSelection:
    async def test_rejection_shown_in_place(self, invite_cog, interaction, mocker):
        invite_cog.container.invites.request_invite.side_effect = InviteAlreadyPendingError(5, "plex")
        author = mocker.MagicMock(id=5, display_name="Alice")

        await invite_cog.submit_request(interaction, author, "Alice", "", MediaService.PLEX)

        kwargs = interaction.edit_original_response.await_args.kwargs
        assert kwargs["embed"].title == InviteAlreadyPendingError.TITLE
        assert kwargs["view"] is None

    async def test_unexpected_error_still_answers(self, invite_cog, interaction, mocker):
        invite_cog.container.invites.request_invite.side_effect = RuntimeError("boom")
        author = mocker.MagicMock(id=5, display_name="Alice")

        await invite_cog.submit_request(interaction, author, "Alice", "", MediaService.PLEX)

        interaction.edit_original_response.assert_awaited_once()
        kwargs = interaction.edit_original_response.await_args.kwargs
        assert kwargs["embed"].title == "Something Went Wrong"
        assert kwargs["view"] is None
