"""
Dashboard rendering.

Turns a `DashboardSnapshot` into the payload the dashboard transport posts:
one status embed plus a row set of quick-link buttons. A failed integration
keeps its field and shows the captured message, so a broken upstream is
visible instead of silently missing.

Usage:
    >>> payload = render_dashboard(snapshot, selection, catalogue)
    >>> await channel.send(embeds=payload.embeds, view=payload.view)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

import discord

from src.core.config.catalogue import CatalogueEntry, ServiceCatalogue
from src.modules.dashboard.selection import EnabledServiceSelection
from src.modules.status.clients.cluster import node_for_presence
from src.modules.status.models import DashboardSnapshot, Integration, ServiceSnapshot
from src.ui.emojis import Emojis
from src.ui.formatters import StatusFormatters as fmt
from src.ui.themes import BrandingTheme, EmbedColor, UIConstants
from src.ui.views.links import QuickLinksView

DASHBOARD_TITLE = f"{Emojis.SERVER} HomeLab Dashboard"
ARR_EMOJI = {"radarr": "🎬", "sonarr": "📺", "lidarr": "🎵", "readarr": "📚", "prowlarr": "🔍"}


@dataclass(frozen=True)
class DashboardPayload:
    embeds: List[discord.Embed]
    view: Optional[discord.ui.View] = None


# ============================================================================
# FIELD BUILDERS
# ============================================================================


def unavailable_line(label: str, snapshot: Optional[ServiceSnapshot]) -> str:
    if snapshot is None:
        return f"{Emojis.UNKNOWN} **{label}** not polled yet"
    if snapshot.status.value == "disabled":
        return f"{Emojis.DISABLED} **{label}** not configured"
    return f"{Emojis.OFFLINE} **{label} unavailable**\n*{snapshot.message}*"


def _server_field(snapshot: DashboardSnapshot, preferred_node: str) -> str:
    cluster = snapshot.get(Integration.CLUSTER)
    if cluster is None or not cluster.is_online:
        return unavailable_line("Server stats", cluster)

    node = node_for_presence(list(cluster.get("nodes") or []), preferred_node)
    if node is None or node.get("status") != "online":
        return f"{Emojis.WARNING} No online node"

    lines = [f"**{node.get('name')}**"]
    for label, key in (("CPU", "cpu_percent"), ("RAM", "memory_percent"), ("Disk", "disk_percent")):
        value = node.get(key)
        lines.append(f"{label}: `{fmt.progress_bar(value)}` {fmt.percent(value)}")
    lines.append(f"Uptime: {fmt.format_uptime(node.get('uptime_seconds'))}")
    return "\n".join(lines)


def _docker_field(docker: Optional[ServiceSnapshot]) -> str:
    if docker is None or not docker.is_online:
        return unavailable_line("Docker", docker)
    return (
        f"{Emojis.ONLINE} {docker.get('running', 0)}/{docker.get('total', 0)} running\n"
        f"{Emojis.OFFLINE} {docker.get('stopped', 0)} stopped"
    )


def _media_field(media: Optional[ServiceSnapshot]) -> str:
    if media is None or not media.is_online:
        return unavailable_line("Media servers", media)

    total = int(media.get("total_streams") or 0)
    lines = [f"{Emojis.VIEWERS} **{total}** {'person' if total == 1 else 'people'} watching"]
    for key, label in (("jellyfin", "Jellyfin"), ("plex", "Plex")):
        app = media.get(key) or {}
        status = app.get("status", "unknown")
        if status == "online":
            lines.append(f"{Emojis.for_status(status)} {label}: {app.get('active_streams', 0)} streams")
        elif status != "disabled":
            lines.append(f"{Emojis.for_status(status)} {label}: {app.get('message', status)}")
    return "\n".join(lines)


def _arr_field(arr: Optional[ServiceSnapshot]) -> str:
    if arr is None or not arr.is_online:
        return unavailable_line("ARR stack", arr)

    entries = []
    for name, app in (arr.payload or {}).items():
        if not isinstance(app, Mapping):
            continue
        status = app.get("status", "unknown")
        if status == "disabled":
            continue
        line = f"{Emojis.for_status(status)} {ARR_EMOJI.get(name, '')} **{name.title()}**"
        if status == "online" and "queued" in app:
            line += f" ({app.get('queued', 0)} queued)"
            if app.get("failed"):
                line += f" {Emojis.WARNING}{app['failed']}"
        elif status == "online" and "total_indexers" in app:
            line += f" ({app.get('active_indexers', 0)}/{app.get('total_indexers', 0)} indexers)"
        entries.append(line)
    return " • ".join(entries) or f"{Emojis.DISABLED} No ARR apps configured"


def _downloads_field(downloads: Optional[ServiceSnapshot]) -> str:
    if downloads is None or not downloads.is_online:
        return unavailable_line("Downloads", downloads)

    lines: List[str] = []
    qbit = downloads.get("qbittorrent") or {}
    if qbit.get("status") == "online":
        lines.append(
            f"**qBittorrent** {fmt.format_speed(qbit.get('speed_bytes'))} • "
            f"{qbit.get('downloading', 0)} active • {qbit.get('seeding', 0)} seeding"
        )
        if qbit.get("downloading"):
            lines.append(f"ETA: {fmt.format_duration(qbit.get('eta_seconds'))}")
        for torrent in list(qbit.get("torrents") or [])[:3]:
            name = UIConstants.truncate_text(torrent.get("name", "?"), 40)
            lines.append(f"└ {name} ({torrent.get('progress', 0)}%)")
    elif qbit.get("status") not in (None, "disabled"):
        lines.append(f"{Emojis.OFFLINE} qBittorrent: {qbit.get('message')}")

    nzb = downloads.get("nzbget") or {}
    if nzb.get("status") == "online":
        if nzb.get("downloading"):
            lines.append(
                f"**NZBGet** {fmt.format_speed(nzb.get('speed_bytes'))} • "
                f"{fmt.format_bytes(nzb.get('remaining_bytes'))} left • "
                f"ETA {fmt.format_duration(nzb.get('eta_seconds'))}"
            )
        else:
            lines.append("**NZBGet** idle")
    elif nzb.get("status") not in (None, "disabled"):
        lines.append(f"{Emojis.OFFLINE} NZBGet: {nzb.get('message')}")

    return "\n".join(lines) or "No download clients configured"


def _cluster_field(cluster: Optional[ServiceSnapshot]) -> str:
    if cluster is None or not cluster.is_online:
        return unavailable_line("Proxmox", cluster)

    summary = cluster.get("summary") or {}
    lines = [
        f"Nodes: {summary.get('online_nodes', 0)}/{summary.get('total_nodes', 0)} online",
        f"VMs: {summary.get('running_vms', 0)}/{summary.get('total_vms', 0)} running",
    ]
    running = [vm for vm in cluster.get("vms") or [] if vm.get("status") == "running"]
    for vm in running[:3]:
        lines.append(f"└ {vm.get('name')} ({vm.get('node')})")
    return "\n".join(lines)


# ============================================================================
# RENDERING
# ============================================================================


def build_status_embed(snapshot: Optional[DashboardSnapshot], preferred_node: str = "pve") -> discord.Embed:
    if snapshot is None:
        return discord.Embed(
            title=DASHBOARD_TITLE,
            description="Collecting status...",
            color=EmbedColor.DASHBOARD,
        )

    embed = discord.Embed(
        title=DASHBOARD_TITLE,
        color=EmbedColor.SUCCESS if not snapshot.failed() else EmbedColor.WARNING,
        timestamp=datetime.fromtimestamp(snapshot.captured_at, tz=timezone.utc),
    )
    embed.set_footer(text=f"{BrandingTheme.BOT_NAME} • Last updated")

    fields: List[Dict[str, Any]] = [
        {"name": f"{Emojis.SERVER} Server Stats", "value": _server_field(snapshot, preferred_node), "inline": True},
        {"name": f"{Emojis.DOCKER} Docker Status", "value": _docker_field(snapshot.get(Integration.DOCKER)), "inline": True},
        {"name": f"{Emojis.MEDIA} Media Activity", "value": _media_field(snapshot.get(Integration.MEDIA)), "inline": True},
        {"name": f"{Emojis.ARR} ARR Stack", "value": _arr_field(snapshot.get(Integration.ARR)), "inline": False},
        {"name": f"{Emojis.DOWNLOADS} Downloads", "value": _downloads_field(snapshot.get(Integration.DOWNLOADS)), "inline": False},
        {"name": f"{Emojis.CLUSTER} Proxmox Cluster", "value": _cluster_field(snapshot.get(Integration.CLUSTER)), "inline": False},
    ]
    for field in fields:
        embed.add_field(
            name=field["name"],
            value=UIConstants.truncate_text(field["value"], UIConstants.EMBED_FIELD_LIMIT),
            inline=field["inline"],
        )
    return embed


def quick_links(selection: EnabledServiceSelection, catalogue: ServiceCatalogue) -> Sequence[CatalogueEntry]:
    """Enabled catalogue entries that have a URL, in catalogue order."""
    limit = UIConstants.MAX_BUTTONS_PER_ROW * UIConstants.MAX_ROWS
    entries = [catalogue.get(i) for i in selection.enabled_ids(catalogue)]
    return [e for e in entries if e is not None and e.has_link][:limit]


def render_dashboard(
    snapshot: Optional[DashboardSnapshot],
    selection: EnabledServiceSelection,
    catalogue: ServiceCatalogue,
    preferred_node: str = "pve",
) -> DashboardPayload:
    """Full dashboard payload. Must be called from inside the event loop (views need one)."""
    links = quick_links(selection, catalogue)
    view = QuickLinksView(links) if links else None
    return DashboardPayload(embeds=[build_status_embed(snapshot, preferred_node)], view=view)
