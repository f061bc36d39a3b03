"""
Pytest Configuration and Fixtures for the HomeLab Bot Tests
===========================================================

Purpose
-------
Shared fixtures for the unit test suite: virtual time, in-memory storage,
fake chat transports and sample snapshots.

Responsibilities
----------------
- Deterministic scheduler (`VirtualScheduler`) instead of real sleeps
- In-memory `DocumentStore` that records every save
- Fakes for the dashboard transport, the invite notifier and the invite issuer
- Snapshot factories for each integration
- Discord.py mocks for cog/view code

Non-Responsibilities
--------------------
- Network access (upstream clients are tested with `httpx.MockTransport`)
- Production configuration (test-specific only)

Architecture Notes
------------------
- Fakes implement the same protocols the services depend on, so the services
  under test run unmodified.
- Every fixture is function scoped: each test starts from a clean slate.
"""

from __future__ import annotations

import copy
import itertools
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from src.core.config.catalogue import CatalogueEntry, ServiceCatalogue
from src.core.config.config import BotConfig, ServiceEndpoint
from src.core.exceptions import MessageNotFoundError, TransportError, UpstreamUnavailableError
from src.core.logging.logger import get_logger
from src.core.scheduler.virtual import VirtualScheduler
from src.core.storage.base import DocumentStore
from src.modules.admin.service import AdminSettingsService
from src.modules.invite.models import InviteDecision, InviteRequest, IssuedInvite, MediaService, PromptRef
from src.modules.invite.one_shot import OneShotRegistry
from src.modules.invite.repository import PendingInviteRepository
from src.modules.invite.service import InviteWorkflowService
from src.modules.status.models import DashboardSnapshot, Integration, ServiceSnapshot

ADMIN_CHANNEL_ID = 555000
NOW = 1_700_000_000.0


# ============================================================================
# FAKES
# ============================================================================


class MemoryStore(DocumentStore):
    """Dict-backed store; `saves` keeps a deep copy of every write."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.documents: Dict[str, Dict[str, Any]] = copy.deepcopy(documents or {})
        self.saves: List[Tuple[str, Dict[str, Any]]] = []

    async def load(self, name: str) -> Optional[Dict[str, Any]]:
        document = self.documents.get(name)
        return copy.deepcopy(document) if document is not None else None

    async def save(self, name: str, data: Dict[str, Any]) -> None:
        self.documents[name] = copy.deepcopy(data)
        self.saves.append((name, copy.deepcopy(data)))


class FakeTransport:
    """
    Records dashboard posts and edits.

    `fail_create` / `fail_edit` hold exceptions raised by the next call;
    `gone` holds message ids that no longer exist.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1000)
        self.created: List[Tuple[int, int, Any]] = []
        self.edited: List[Tuple[int, int, Any]] = []
        self.deleted: List[Tuple[int, int]] = []
        self.gone: set[int] = set()
        self.fail_create: Optional[Exception] = None
        self.fail_edit: Optional[Exception] = None

    async def create_message(self, channel_id: int, payload: Any) -> int:
        if self.fail_create is not None:
            error, self.fail_create = self.fail_create, None
            raise error
        message_id = next(self._ids)
        self.created.append((channel_id, message_id, payload))
        return message_id

    async def edit_message(self, channel_id: int, message_id: int, payload: Any) -> None:
        if message_id in self.gone:
            raise MessageNotFoundError(channel_id, message_id)
        if self.fail_edit is not None:
            error, self.fail_edit = self.fail_edit, None
            raise error
        self.edited.append((channel_id, message_id, payload))


class FakeNotifier:
    """Records every chat-side effect of the invite workflow."""

    def __init__(self) -> None:
        self._ids = itertools.count(9000)
        self.prompts: List[Tuple[int, InviteRequest]] = []
        self.resolved: List[InviteDecision] = []
        self.notified: List[InviteDecision] = []
        self.direct: List[Tuple[int, MediaService, str, str, str]] = []
        self.fail_prompt = False
        self.fail_notify = False
        self.fail_direct = False

    async def post_prompt(self, channel_id: int, request: InviteRequest) -> PromptRef:
        if self.fail_prompt:
            raise TransportError("Missing Access")
        self.prompts.append((channel_id, request))
        return PromptRef(channel_id, next(self._ids))

    async def resolve_prompt(self, decision: InviteDecision) -> None:
        self.resolved.append(decision)

    async def notify_requester(self, decision: InviteDecision) -> None:
        if self.fail_notify:
            raise TransportError("Cannot send messages to this user")
        self.notified.append(decision)

    async def send_direct_invite(
        self, target_id: int, service: MediaService, url: str, name: str, admin_name: str
    ) -> None:
        if self.fail_direct:
            raise TransportError("Cannot send messages to this user")
        self.direct.append((target_id, service, url, name, admin_name))


class FakeIssuer:
    """Invite issuer that fails `failures` times before succeeding."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls: List[Tuple[str, MediaService]] = []

    async def create_invite(self, name: str, service: MediaService) -> IssuedInvite:
        self.calls.append((name, service))
        if self.failures > 0:
            self.failures -= 1
            raise UpstreamUnavailableError("Wizarr", "connection failed (ConnectError)")
        code = f"code{len(self.calls)}"
        return IssuedInvite(code=code, url=f"https://wizarr.test/j/{code}")


# ============================================================================
# CORE FIXTURES
# ============================================================================


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler(start=NOW)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def config(tmp_path: Path) -> BotConfig:
    return BotConfig(
        discord_token="test-token",
        data_dir=tmp_path / "data",
        logs_dir=tmp_path / "logs",
        invite_expiry_hours=24,
        wizarr=ServiceEndpoint("wizarr", url="https://wizarr.test", api_key="secret"),
    )


@pytest.fixture
def catalogue() -> ServiceCatalogue:
    return ServiceCatalogue(
        (
            CatalogueEntry("jellyfin", "Jellyfin", "🎬", "https://jellyfin.test"),
            CatalogueEntry("plex", "Plex", "🎭", "https://plex.test"),
            CatalogueEntry("sonarr", "Sonarr", "📺", "https://sonarr.test"),
            CatalogueEntry("radarr", "Radarr", "🎬", ""),
        )
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


# ============================================================================
# INVITE FIXTURES
# ============================================================================


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def issuer() -> FakeIssuer:
    return FakeIssuer()


@pytest.fixture
def admin_settings(config, memory_store, scheduler) -> AdminSettingsService:
    return AdminSettingsService(config, memory_store, scheduler, get_logger("tests.admin"))


@pytest.fixture
def invite_service_factory(config, memory_store, admin_settings, notifier, scheduler, catalogue):
    """Build an `InviteWorkflowService`; call again to simulate a restart."""

    def _build(issuer: Optional[FakeIssuer] = None, store: Optional[MemoryStore] = None) -> InviteWorkflowService:
        return InviteWorkflowService(
            config,
            PendingInviteRepository(store or memory_store, get_logger("tests.invite.repository")),
            admin_settings,
            issuer or FakeIssuer(),
            notifier,
            scheduler,
            OneShotRegistry(scheduler),
            get_logger("tests.invite"),
            catalogue=catalogue,
        )

    return _build


@pytest.fixture
def expiry_window(config) -> timedelta:
    return timedelta(hours=config.invite_expiry_hours)


# ============================================================================
# SNAPSHOT FACTORIES
# ============================================================================


def media_payload(jellyfin_streams: int = 2, plex_streams: int = 1) -> Dict[str, Any]:
    return {
        "jellyfin": {"status": "online", "version": "10.9.0", "active_streams": jellyfin_streams, "sessions": []},
        "plex": {"status": "online", "version": "1.40", "active_streams": plex_streams, "sessions": []},
        "total_streams": jellyfin_streams + plex_streams,
    }


def cluster_payload(cpu: float = 12.5, memory: float = 40.0, disk: float = 63.2, name: str = "pve") -> Dict[str, Any]:
    return {
        "nodes": [
            {
                "name": name,
                "status": "online",
                "cpu_percent": cpu,
                "memory_percent": memory,
                "disk_percent": disk,
                "uptime_seconds": 90061,
            }
        ],
        "vms": [{"id": 100, "name": "docker-host", "status": "running", "node": name, "type": "qemu"}],
        "summary": {"total_nodes": 1, "online_nodes": 1, "total_vms": 1, "running_vms": 1},
    }


def docker_payload(running: int = 8, total: int = 10) -> Dict[str, Any]:
    return {"total": total, "running": running, "stopped": total - running, "containers": []}


def make_snapshot(*services: ServiceSnapshot, captured_at: float = NOW) -> DashboardSnapshot:
    return DashboardSnapshot(services={s.integration: s for s in services}, captured_at=captured_at)


@pytest.fixture
def healthy_snapshot() -> DashboardSnapshot:
    return make_snapshot(
        ServiceSnapshot.online(Integration.MEDIA, media_payload(), NOW),
        ServiceSnapshot.online(Integration.CLUSTER, cluster_payload(), NOW),
        ServiceSnapshot.online(Integration.DOCKER, docker_payload(), NOW),
    )


# ============================================================================
# DISCORD.PY MOCK FIXTURES (Cog Tests)
# ============================================================================


@pytest.fixture
def mock_bot(mocker):
    mock_bot = mocker.MagicMock()
    mock_bot.user = mocker.MagicMock()
    mock_bot.user.id = 123456789
    mock_bot.user.name = "TestBot"
    return mock_bot


@pytest.fixture
def mock_context(mocker, mock_bot):
    mock_ctx = mocker.MagicMock()
    mock_ctx.bot = mock_bot
    mock_ctx.interaction = None
    mock_ctx.author = mocker.MagicMock()
    mock_ctx.author.id = 987654321
    mock_ctx.author.name = "TestUser"
    mock_ctx.guild = mocker.MagicMock()
    mock_ctx.guild.id = 111222333
    mock_ctx.channel = mocker.MagicMock()
    mock_ctx.send = mocker.AsyncMock()
    mock_ctx.reply = mocker.AsyncMock()
    mock_ctx.defer = mocker.AsyncMock()
    return mock_ctx
