"""
Unit tests for dashboard rendering.

Views need a running event loop, so these tests are async.
"""

import discord

from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.status.models import Integration, ServiceSnapshot
from src.ui.dashboard import DASHBOARD_TITLE, build_status_embed, quick_links, render_dashboard
from src.ui.themes import EmbedColor
from src.ui.views.links import QuickLinksView
from tests.conftest import NOW, cluster_payload, make_snapshot, media_payload


def field(embed, prefix):
    return next(f for f in embed.fields if prefix in f.name)


class TestStatusEmbed:
    async def test_no_snapshot_placeholder(self):
        embed = build_status_embed(None)

        assert embed.title == DASHBOARD_TITLE
        assert embed.description == "Collecting status..."

    async def test_healthy_snapshot(self, healthy_snapshot):
        embed = build_status_embed(healthy_snapshot)

        assert len(embed.fields) == 6
        assert "3** people watching" in field(embed, "Media").value
        assert "8/10 running" in field(embed, "Docker").value
        assert "CPU:" in field(embed, "Server").value
        assert "not polled yet" in field(embed, "ARR").value

    async def test_failed_integration_keeps_field(self):
        snapshot = make_snapshot(
            ServiceSnapshot.online(Integration.MEDIA, media_payload(1, 0), NOW),
            ServiceSnapshot.offline(Integration.DOCKER, "Docker: connection failed", NOW),
            ServiceSnapshot.disabled(Integration.ARR, "ARR stack not configured", NOW),
        )
        embed = build_status_embed(snapshot)

        assert "1** person watching" in field(embed, "Media").value
        assert "Docker: connection failed" in field(embed, "Docker").value
        assert "not configured" in field(embed, "ARR").value
        assert embed.color.value == EmbedColor.WARNING

    async def test_offline_preferred_node_uses_other_node(self):
        payload = cluster_payload(name="pve")
        payload["nodes"][0]["status"] = "offline"
        payload["nodes"].append(cluster_payload(cpu=33.0, name="node2")["nodes"][0])
        snapshot = make_snapshot(ServiceSnapshot.online(Integration.CLUSTER, payload, NOW))

        value = field(build_status_embed(snapshot, preferred_node="pve"), "Server").value

        assert "**node2**" in value
        assert "33.0%" in value


class TestQuickLinks:
    async def test_only_enabled_entries_with_urls(self, catalogue):
        selection = EnabledServiceSelection.all().toggle("plex", catalogue)

        entries = quick_links(selection, catalogue)

        assert [e.id for e in entries] == ["jellyfin", "sonarr"]

    async def test_render_attaches_link_view(self, catalogue, healthy_snapshot):
        payload = render_dashboard(healthy_snapshot, EnabledServiceSelection.all(), catalogue)

        assert isinstance(payload.view, QuickLinksView)
        assert [b.label for b in payload.view.children] == ["Jellyfin", "Plex", "Sonarr"]
        assert all(b.style is discord.ButtonStyle.link for b in payload.view.children)

    async def test_no_links_no_view(self, catalogue, healthy_snapshot):
        payload = render_dashboard(healthy_snapshot, EnabledServiceSelection.all().disable_all(), catalogue)

        assert payload.view is None
        assert len(payload.embeds) == 1
