"""
Unit tests for InviteWorkflowService.

Tests the request -> approve/deny/expire lifecycle, single-use admin actions,
persistence after every mutation and recovery after a restart.
"""

import asyncio
from datetime import timedelta

import pytest

from src.core.exceptions import StorageError, TransportError
from src.modules.invite.models import InviteState, MediaService
from src.modules.invite.repository import PENDING_INVITES_DOCUMENT
from src.modules.shared.exceptions import (
    AdminChannelNotConfiguredError,
    InviteAlreadyPendingError,
    InviteAlreadyProcessedError,
    InviteIssuanceError,
    InvitePromptDeliveryError,
    UnknownServiceError,
    ValidationError,
)
from tests.conftest import ADMIN_CHANNEL_ID, FakeIssuer, MemoryStore

REQUESTER = 4242
ADMIN = 1


@pytest.fixture
async def ready_admin(admin_settings):
    await admin_settings.set_channel(ADMIN_CHANNEL_ID)
    return admin_settings


def stored_ids(store):
    return set((store.documents.get(PENDING_INVITES_DOCUMENT) or {}).keys())


class TestRequest:
    async def test_no_admin_channel_rejected(self, invite_service_factory, memory_store, notifier):
        service = invite_service_factory()

        with pytest.raises(AdminChannelNotConfiguredError):
            await service.request_invite(REQUESTER, "Alice", "plex")

        assert service.get_pending(REQUESTER) is None
        assert notifier.prompts == []
        assert PENDING_INVITES_DOCUMENT not in memory_store.documents

    async def test_request_posts_prompt_and_persists(
        self, ready_admin, invite_service_factory, memory_store, notifier
    ):
        service = invite_service_factory()

        request = await service.request_invite(REQUESTER, "  Alice ", "Plex", justification="family")

        assert request.service is MediaService.PLEX
        assert request.requester_name == "Alice"
        assert request.prompt is not None
        assert notifier.prompts[0][0] == ADMIN_CHANNEL_ID
        assert stored_ids(memory_store) == {str(REQUESTER)}
        assert service.is_pending(REQUESTER)

    async def test_duplicate_request_rejected(self, ready_admin, invite_service_factory):
        service = invite_service_factory()
        await service.request_invite(REQUESTER, "Alice", "plex")

        with pytest.raises(InviteAlreadyPendingError):
            await service.request_invite(REQUESTER, "Alice", "jellyfin")

        assert service.get_pending(REQUESTER).service is MediaService.PLEX

    async def test_unknown_service_rejected(self, ready_admin, invite_service_factory):
        service = invite_service_factory()

        with pytest.raises(UnknownServiceError):
            await service.request_invite(REQUESTER, "Alice", "emby")

    async def test_empty_name_rejected(self, ready_admin, invite_service_factory):
        service = invite_service_factory()

        with pytest.raises(ValidationError):
            await service.request_invite(REQUESTER, "   ", "plex")

    async def test_prompt_failure_stores_nothing(self, ready_admin, invite_service_factory, memory_store, notifier):
        notifier.fail_prompt = True
        service = invite_service_factory()

        with pytest.raises(InvitePromptDeliveryError):
            await service.request_invite(REQUESTER, "Alice", "plex")

        assert not service.is_pending(REQUESTER)
        assert stored_ids(memory_store) == set()

    async def test_storage_failure_rolls_back(self, ready_admin, invite_service_factory, notifier, mocker):
        store = MemoryStore()
        mocker.patch.object(store, "save", side_effect=StorageError("save", OSError("disk full")))
        service = invite_service_factory(store=store)

        with pytest.raises(StorageError):
            await service.request_invite(REQUESTER, "Alice", "plex")

        assert not service.is_pending(REQUESTER)
        assert [d.state for d in notifier.resolved] == [InviteState.CANCELLED]
        assert notifier.resolved[0].request.prompt is not None

    async def test_storage_failure_survives_prompt_withdraw_failure(
        self, ready_admin, invite_service_factory, notifier, mocker
    ):
        store = MemoryStore()
        mocker.patch.object(store, "save", side_effect=StorageError("save", OSError("disk full")))
        mocker.patch.object(notifier, "resolve_prompt", side_effect=TransportError("Unknown Message"))
        service = invite_service_factory(store=store)

        with pytest.raises(StorageError):
            await service.request_invite(REQUESTER, "Alice", "plex")

        assert not service.is_pending(REQUESTER)


class TestApprove:
    async def test_issuance_failure_then_retry(self, ready_admin, invite_service_factory, memory_store, notifier):
        """Failed issuance keeps the request; the retry succeeds and notifies."""
        service = invite_service_factory(issuer=FakeIssuer(failures=1))
        await service.request_invite(REQUESTER, "Alice", "plex")

        with pytest.raises(InviteIssuanceError):
            await service.approve(REQUESTER, ADMIN)

        assert service.is_pending(REQUESTER)
        assert stored_ids(memory_store) == {str(REQUESTER)}
        assert notifier.notified == []

        decision = await service.approve(REQUESTER, ADMIN)

        assert decision.state is InviteState.APPROVED
        assert decision.invite.url.startswith("https://wizarr.test/j/")
        assert decision.delivered
        assert not service.is_pending(REQUESTER)
        assert stored_ids(memory_store) == set()
        assert notifier.notified[0].invite.url == decision.invite.url
        assert notifier.resolved[0].state is InviteState.APPROVED

    async def test_second_click_already_processed(self, ready_admin, invite_service_factory):
        service = invite_service_factory()
        await service.request_invite(REQUESTER, "Alice", "plex")
        await service.deny(REQUESTER, ADMIN)

        with pytest.raises(InviteAlreadyProcessedError):
            await service.approve(REQUESTER, ADMIN)

    async def test_concurrent_clicks_single_winner(self, ready_admin, invite_service_factory, issuer):
        gate = asyncio.Event()
        original = issuer.create_invite

        async def slow_issue(name, svc):
            await gate.wait()
            return await original(name, svc)

        issuer.create_invite = slow_issue
        service = invite_service_factory(issuer=issuer)
        await service.request_invite(REQUESTER, "Alice", "plex")

        first = asyncio.create_task(service.approve(REQUESTER, ADMIN))
        await asyncio.sleep(0)
        with pytest.raises(InviteAlreadyProcessedError):
            await service.deny(REQUESTER, 2)
        gate.set()

        decision = await first
        assert decision.state is InviteState.APPROVED
        assert len(issuer.calls) == 1

    async def test_notify_failure_reported_not_raised(self, ready_admin, invite_service_factory, notifier):
        notifier.fail_notify = True
        service = invite_service_factory()
        await service.request_invite(REQUESTER, "Alice", "plex")

        decision = await service.approve(REQUESTER, ADMIN)

        assert decision.state is InviteState.APPROVED
        assert decision.delivered is False
        assert not service.is_pending(REQUESTER)


class TestDeny:
    async def test_deny_removes_and_notifies(self, ready_admin, invite_service_factory, memory_store, notifier, issuer):
        service = invite_service_factory(issuer=issuer)
        await service.request_invite(REQUESTER, "Alice", "jellyfin")

        decision = await service.deny(REQUESTER, ADMIN)

        assert decision.state is InviteState.DENIED
        assert decision.invite is None
        assert issuer.calls == []
        assert stored_ids(memory_store) == set()
        assert notifier.notified[0].state is InviteState.DENIED


class TestExpiry:
    async def test_timer_expires_request(self, ready_admin, invite_service_factory, memory_store, scheduler, expiry_window):
        service = invite_service_factory()
        await service.request_invite(REQUESTER, "Alice", "plex")

        await scheduler.advance(expiry_window.total_seconds())

        assert not service.is_pending(REQUESTER)
        assert stored_ids(memory_store) == set()
        with pytest.raises(InviteAlreadyProcessedError):
            await service.approve(REQUESTER, ADMIN)

    async def test_expiry_skipped_while_approval_in_flight(
        self, ready_admin, invite_service_factory, scheduler, issuer, expiry_window
    ):
        gate = asyncio.Event()
        original = issuer.create_invite

        async def slow_issue(name, svc):
            await gate.wait()
            return await original(name, svc)

        issuer.create_invite = slow_issue
        service = invite_service_factory(issuer=issuer)
        await service.request_invite(REQUESTER, "Alice", "plex")

        approval = asyncio.create_task(service.approve(REQUESTER, ADMIN))
        await asyncio.sleep(0)
        assert await service.expire(REQUESTER) is False
        gate.set()

        decision = await approval
        assert decision.state is InviteState.APPROVED

    async def test_cleanup_and_list_sweep_expired(self, ready_admin, invite_service_factory, scheduler, memory_store):
        service = invite_service_factory()
        await service.request_invite(REQUESTER, "Alice", "plex")
        await service.request_invite(REQUESTER + 1, "Bob", "jellyfin")
        service.shutdown()  # no timers: exercise the passive sweep

        pending = await service.list_pending()
        assert [r.requester_id for r in pending] == [REQUESTER, REQUESTER + 1]

        later = service._now() + timedelta(hours=25)
        assert await service.cleanup_expired(later) == 2
        assert stored_ids(memory_store) == set()


class TestRestore:
    async def test_restart_keeps_pending_and_drops_expired(
        self, ready_admin, invite_service_factory, memory_store, scheduler
    ):
        first = invite_service_factory()
        await first.request_invite(REQUESTER, "Alice", "plex")
        await scheduler.advance(3600 * 20)
        await first.request_invite(REQUESTER + 1, "Bob", "jellyfin")
        first.shutdown()

        await scheduler.advance(3600 * 5)
        restarted = invite_service_factory()
        assert await restarted.restore() == 1

        assert not restarted.is_pending(REQUESTER)
        assert restarted.is_pending(REQUESTER + 1)
        assert stored_ids(memory_store) == {str(REQUESTER + 1)}

        decision = await restarted.approve(REQUESTER + 1, ADMIN)
        assert decision.request.requester_name == "Bob"

    async def test_restored_request_expires_on_schedule(
        self, ready_admin, invite_service_factory, scheduler, memory_store
    ):
        first = invite_service_factory()
        await first.request_invite(REQUESTER, "Alice", "plex")
        first.shutdown()

        restarted = invite_service_factory()
        await restarted.restore()
        await scheduler.advance(3600 * 24)

        assert not restarted.is_pending(REQUESTER)
        assert stored_ids(memory_store) == set()

    async def test_unreadable_record_skipped(self, invite_service_factory, memory_store):
        memory_store.documents[PENDING_INVITES_DOCUMENT] = {"1": {"userId": "x"}}
        service = invite_service_factory()

        assert await service.restore() == 0


class TestDirectInvite:
    async def test_give_invite_dms_link(self, invite_service_factory, notifier):
        service = invite_service_factory()

        result = await service.give_invite(ADMIN, REQUESTER, "Carol", "jellyfin", admin_name="Admin")

        assert result.issued and result.delivered
        assert notifier.direct[0][0] == REQUESTER
        assert notifier.direct[0][2] == result.url

    async def test_falls_back_to_public_link(self, invite_service_factory, notifier):
        service = invite_service_factory(issuer=FakeIssuer(failures=1))

        result = await service.give_invite(ADMIN, REQUESTER, "Carol", "plex")

        assert result.issued is False
        assert result.url == "https://plex.test"

    async def test_dm_failure_reported(self, invite_service_factory, notifier):
        notifier.fail_direct = True
        service = invite_service_factory()

        result = await service.give_invite(ADMIN, REQUESTER, "Carol", "plex")

        assert result.delivered is False
        assert result.url
