"""
Unit tests for the dashboard service selection and the settings services.

Tests toggling semantics and that every mutation writes through to storage.
"""

import pytest

from src.core.logging.logger import get_logger
from src.modules.admin.service import ADMIN_DOCUMENT, AdminSettingsService
from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.dashboard.settings import DASHBOARD_DOCUMENT, DashboardSettingsService
from src.modules.shared.exceptions import UnknownServiceError
from tests.conftest import MemoryStore


@pytest.fixture
def settings(config, memory_store, catalogue, scheduler):
    return DashboardSettingsService(config, memory_store, catalogue, scheduler, get_logger("tests.dashboard"))


class TestSelection:
    def test_toggle_off_from_all(self, catalogue):
        selection = EnabledServiceSelection.all().toggle("plex", catalogue)

        assert not selection.is_all
        assert selection.enabled_ids(catalogue) == ("jellyfin", "sonarr", "radarr")

    def test_toggle_back_on(self, catalogue):
        selection = EnabledServiceSelection.all().toggle("plex", catalogue).toggle("plex", catalogue)

        assert selection.is_enabled("plex")
        assert not selection.is_all

    def test_disable_then_enable_all(self, catalogue):
        selection = EnabledServiceSelection.all().disable_all()

        assert selection.enabled_ids(catalogue) == ()
        assert selection.enable_all().is_all

    def test_unknown_service(self, catalogue):
        with pytest.raises(UnknownServiceError):
            EnabledServiceSelection.all().toggle("emby", catalogue)

    @pytest.mark.parametrize(
        "record, expected",
        [
            ("all", None),
            (None, None),
            (["sonarr", "plex"], frozenset({"plex", "sonarr"})),
            ([], frozenset()),
            (42, None),
        ],
    )
    def test_from_record(self, record, expected):
        assert EnabledServiceSelection.from_record(record).services == expected

    def test_to_record_sorted(self):
        assert EnabledServiceSelection.of(["sonarr", "plex"]).to_record() == ["plex", "sonarr"]
        assert EnabledServiceSelection.all().to_record() == "all"


class TestDashboardSettings:
    async def test_mutations_write_through(self, settings, memory_store):
        await settings.set_channel(42)
        await settings.toggle_service("sonarr")

        record = memory_store.documents[DASHBOARD_DOCUMENT]
        assert record["channelId"] == "42"
        assert record["enabledServices"] == ["jellyfin", "plex", "radarr"]
        assert record["lastUpdated"]
        assert len(memory_store.saves) == 2

    async def test_clear_channel(self, settings, memory_store):
        await settings.set_channel(42)
        await settings.clear_channel()

        assert settings.channel_id is None
        assert memory_store.documents[DASHBOARD_DOCUMENT]["channelId"] is None

    async def test_load_accepts_legacy_key(self, config, catalogue, scheduler):
        store = MemoryStore({DASHBOARD_DOCUMENT: {"dashboardChannelId": "77", "enabledServices": ["plex"]}})
        settings = DashboardSettingsService(config, store, catalogue, scheduler, get_logger("tests.dashboard"))

        await settings.load()

        assert settings.channel_id == 77
        assert settings.selection.enabled_ids(catalogue) == ("plex",)

    async def test_status(self, settings):
        await settings.toggle_service("radarr")
        status = settings.status()

        assert status["all_enabled"] is False
        assert status["enabled_count"] == 3
        assert status["total_services"] == 4

    async def test_reset_restores_all(self, settings):
        await settings.disable_all()
        await settings.reset()

        assert settings.selection.is_all


class TestAdminSettings:
    async def test_set_and_reload(self, config, memory_store, scheduler):
        first = AdminSettingsService(config, memory_store, scheduler, get_logger("tests.admin"))
        await first.set_channel(555)

        second = AdminSettingsService(config, memory_store, scheduler, get_logger("tests.admin"))
        await second.load()

        assert second.admin_channel_id == 555
        assert memory_store.documents[ADMIN_DOCUMENT]["adminChannelId"] == "555"

    async def test_clear(self, admin_settings):
        await admin_settings.set_channel(555)
        await admin_settings.clear_channel()

        assert admin_settings.admin_channel_id is None
        assert admin_settings.status()["last_updated"]
