"""
Per-integration detail embeds.

The dashboard shows one summary field per integration; these builders render
the full cached payload of a single integration for the read-only detail
commands (`/server`, `/docker`, `/media`, `/arr`, `/links`). Like the
dashboard, a failed integration renders its captured message instead of an
empty embed.

Usage:
    >>> snapshot = await aggregator.cache_for(Integration.DOCKER).get()
    >>> await ctx.send(embed=docker_detail_embed(snapshot))
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

import discord

from src.core.config.catalogue import CatalogueEntry
from src.modules.status.clients.cluster import node_for_presence
from src.modules.status.models import ServiceSnapshot
from src.ui.dashboard import ARR_EMOJI, unavailable_line
from src.ui.emojis import Emojis
from src.ui.formatters import StatusFormatters as fmt
from src.ui.themes import BrandingTheme, EmbedColor, UIConstants

SERVER_STATS = ("all", "cpu", "memory", "disk")
MEDIA_KINDS = ("all", "jellyfin", "plex", "qbittorrent", "nzbget")
ARR_APPS = ("all", "radarr", "sonarr", "lidarr", "readarr", "prowlarr")

MAX_LISTED_CONTAINERS = 20
MAX_LISTED_VMS = 10

_NODE_STATS = {
    "cpu": ("CPU", "cpu_percent"),
    "memory": ("RAM", "memory_percent"),
    "disk": ("Disk", "disk_percent"),
}


# ============================================================================
# HELPERS
# ============================================================================


def _detail_embed(title: str, *snapshots: Optional[ServiceSnapshot]) -> discord.Embed:
    known = [s for s in snapshots if s is not None]
    if any(s.status.is_failure for s in known):
        color = EmbedColor.WARNING
    elif any(s.is_online for s in known):
        color = EmbedColor.SUCCESS
    else:
        color = EmbedColor.DEFAULT

    embed = discord.Embed(title=title, color=color)
    if known:
        embed.timestamp = datetime.fromtimestamp(max(s.captured_at for s in known), tz=timezone.utc)
    embed.set_footer(text=f"{BrandingTheme.BOT_NAME} • Last polled")
    return embed


def _add_field(embed: discord.Embed, name: str, lines: Sequence[str], inline: bool = False) -> None:
    value = "\n".join(lines) or "-"
    embed.add_field(name=name, value=UIConstants.truncate_text(value, UIConstants.EMBED_FIELD_LIMIT), inline=inline)


def _app_failure(app: Mapping[str, Any]) -> str:
    status = app.get("status", "unknown")
    if status == "disabled":
        return f"{Emojis.DISABLED} not configured"
    return f"{Emojis.for_status(status)} {app.get('message') or status}"


# ============================================================================
# SERVER
# ============================================================================


def server_detail_embed(
    cluster: Optional[ServiceSnapshot],
    preferred_node: str = "pve",
    stat: str = "all",
) -> discord.Embed:
    """Hypervisor node detail; `stat` narrows the gauges to cpu, memory or disk."""
    embed = _detail_embed(f"{Emojis.SERVER} Server Statistics", cluster)
    if cluster is None or not cluster.is_online:
        embed.description = unavailable_line("Server stats", cluster)
        return embed

    nodes = list(cluster.get("nodes") or [])
    node = node_for_presence(nodes, preferred_node)
    if node is None:
        embed.description = f"{Emojis.WARNING} No online node"
        return embed

    keys = list(_NODE_STATS) if stat == "all" else [stat]
    lines = []
    for key in keys:
        label, field = _NODE_STATS[key]
        value = node.get(field)
        lines.append(f"{label}: `{fmt.progress_bar(value)}` {fmt.percent(value)}")
    if stat == "all":
        if node.get("cores"):
            lines.append(f"Cores: {node['cores']}")
        lines.append(f"Uptime: {fmt.format_uptime(node.get('uptime_seconds'))}")
    _add_field(embed, f"{Emojis.for_status('online')} {node.get('name')}", lines)

    others = [n for n in nodes if n is not node]
    if others:
        _add_field(
            embed,
            "Other Nodes",
            [
                f"{Emojis.for_status(n.get('status', 'unknown'))} **{n.get('name')}**"
                + (f" CPU {fmt.percent(n.get('cpu_percent'))}" if n.get("status") == "online" else "")
                for n in others
            ],
        )

    if stat == "all":
        summary = cluster.get("summary") or {}
        running = [vm for vm in cluster.get("vms") or [] if vm.get("status") == "running"]
        lines = [f"{summary.get('running_vms', 0)}/{summary.get('total_vms', 0)} running"]
        lines += [f"└ {vm.get('name')} ({vm.get('type', 'qemu')} {vm.get('id')}, {vm.get('node')})" for vm in running[:MAX_LISTED_VMS]]
        if len(running) > MAX_LISTED_VMS:
            lines.append(f"...and {len(running) - MAX_LISTED_VMS} more")
        _add_field(embed, f"{Emojis.CLUSTER} Guests", lines)
    return embed


# ============================================================================
# DOCKER
# ============================================================================


def _container_lines(containers: List[Mapping[str, Any]]) -> List[str]:
    lines = [f"`{c.get('name', '?')}` {c.get('status') or c.get('state', '')}" for c in containers[:MAX_LISTED_CONTAINERS]]
    if len(containers) > MAX_LISTED_CONTAINERS:
        lines.append(f"...and {len(containers) - MAX_LISTED_CONTAINERS} more")
    return lines


def docker_detail_embed(docker: Optional[ServiceSnapshot]) -> discord.Embed:
    embed = _detail_embed(f"{Emojis.DOCKER} Docker Containers", docker)
    if docker is None or not docker.is_online:
        embed.description = unavailable_line("Docker", docker)
        return embed

    containers = sorted(docker.get("containers") or [], key=lambda c: c.get("name", ""))
    running = [c for c in containers if c.get("state") == "running"]
    other = [c for c in containers if c.get("state") != "running"]

    embed.description = (
        f"{Emojis.ONLINE} **{docker.get('running', 0)}** running • "
        f"{Emojis.OFFLINE} **{docker.get('stopped', 0)}** stopped • "
        f"{docker.get('total', 0)} total"
    )
    if running:
        _add_field(embed, "Running", _container_lines(running))
    if other:
        _add_field(embed, "Not Running", _container_lines(other))
    return embed


# ============================================================================
# MEDIA
# ============================================================================


def _session_line(session: Mapping[str, Any]) -> str:
    title = session.get("title", "Unknown")
    if session.get("series"):
        title = f"{session['series']} - {session.get('episode') or title}"
    line = f"**{session.get('user', 'Unknown')}**: {title}"
    if session.get("progress") is not None:
        line += f" ({session['progress']:.0f}%)"
    if session.get("device"):
        line += f" on {session['device']}"
    return line


def _media_server_lines(media: Optional[ServiceSnapshot], key: str) -> List[str]:
    if media is None or not media.is_online:
        return [unavailable_line("Media servers", media)]

    app = media.get(key) or {}
    if app.get("status") != "online":
        return [_app_failure(app)]

    sessions = list(app.get("sessions") or [])
    lines = [f"{Emojis.ONLINE} v{app.get('version', 'unknown')} • {app.get('active_streams', 0)} streams"]
    lines += [_session_line(s) for s in sessions] or ["Nothing playing"]
    return lines


def _qbittorrent_lines(downloads: Optional[ServiceSnapshot]) -> List[str]:
    if downloads is None or not downloads.is_online:
        return [unavailable_line("Downloads", downloads)]

    qbit = downloads.get("qbittorrent") or {}
    if qbit.get("status") != "online":
        return [_app_failure(qbit)]

    lines = [
        f"{fmt.format_speed(qbit.get('speed_bytes'))} • {qbit.get('downloading', 0)} downloading • "
        f"{qbit.get('seeding', 0)} seeding • {qbit.get('paused', 0)} paused"
    ]
    if qbit.get("downloading"):
        lines.append(f"ETA: {fmt.format_duration(qbit.get('eta_seconds'))}")
    for torrent in qbit.get("torrents") or []:
        name = UIConstants.truncate_text(torrent.get("name", "?"), 50)
        lines.append(
            f"└ {name} `{fmt.progress_bar(torrent.get('progress'), 10)}` {torrent.get('progress', 0)}% "
            f"of {fmt.format_bytes(torrent.get('size_bytes'))}"
        )
    return lines


def _nzbget_lines(downloads: Optional[ServiceSnapshot]) -> List[str]:
    if downloads is None or not downloads.is_online:
        return [unavailable_line("Downloads", downloads)]

    nzb = downloads.get("nzbget") or {}
    if nzb.get("status") != "online":
        return [_app_failure(nzb)]
    if not nzb.get("downloading"):
        return [f"Idle • {fmt.format_bytes(nzb.get('downloaded_bytes'))} downloaded"]
    return [
        f"{fmt.format_speed(nzb.get('speed_bytes'))} • {fmt.format_bytes(nzb.get('remaining_bytes'))} left",
        f"ETA: {fmt.format_duration(nzb.get('eta_seconds'))}",
    ]


def media_detail_embed(
    media: Optional[ServiceSnapshot],
    downloads: Optional[ServiceSnapshot],
    kind: str = "all",
) -> discord.Embed:
    """Streams per media server and download client activity; `kind` picks one source."""
    sections = {
        "jellyfin": ("🟣 Jellyfin", media, lambda: _media_server_lines(media, "jellyfin")),
        "plex": ("🟠 Plex", media, lambda: _media_server_lines(media, "plex")),
        "qbittorrent": (f"{Emojis.DOWNLOADS} qBittorrent", downloads, lambda: _qbittorrent_lines(downloads)),
        "nzbget": (f"{Emojis.DOWNLOADS} NZBGet", downloads, lambda: _nzbget_lines(downloads)),
    }
    chosen = list(sections) if kind == "all" else [kind]

    embed = _detail_embed(f"{Emojis.MEDIA} Media Activity", *(sections[k][1] for k in chosen))
    if media is not None and media.is_online and kind in ("all", "jellyfin", "plex"):
        total = int(media.get("total_streams") or 0)
        embed.description = f"{Emojis.VIEWERS} **{total}** {'person' if total == 1 else 'people'} watching"

    for key in chosen:
        name, _, build = sections[key]
        _add_field(embed, name, build())
    return embed


# ============================================================================
# ARR
# ============================================================================


def _arr_lines(app: Mapping[str, Any]) -> List[str]:
    if app.get("status") != "online":
        return [_app_failure(app)]

    lines = [f"{Emojis.ONLINE} v{app.get('version', 'unknown')}"]
    if "total_indexers" in app:
        lines.append(f"Indexers: {app.get('active_indexers', 0)}/{app.get('total_indexers', 0)} healthy")
    else:
        lines.append(f"Queue: {app.get('queued', 0)} • Failed: {app.get('failed', 0)}")
        lines.append(f"Upcoming (7 days): {app.get('upcoming', 0)}")
    return lines


def arr_detail_embed(arr: Optional[ServiceSnapshot], app: str = "all") -> discord.Embed:
    embed = _detail_embed(f"{Emojis.ARR} ARR Stack", arr)
    if arr is None or not arr.is_online:
        embed.description = unavailable_line("ARR stack", arr)
        return embed

    apps = {name: data for name, data in (arr.payload or {}).items() if isinstance(data, Mapping)}
    chosen = list(apps) if app == "all" else [app]
    for name in chosen:
        data = apps.get(name)
        if data is None:
            embed.description = f"{Emojis.UNKNOWN} No data for **{name.title()}**"
            continue
        _add_field(embed, f"{ARR_EMOJI.get(name, '')} {name.title()}", _arr_lines(data), inline=True)
    return embed


# ============================================================================
# LINKS
# ============================================================================


def links_embed(entries: Sequence[CatalogueEntry]) -> discord.Embed:
    lines = [f"{entry.emoji} [{entry.label}]({entry.url})".strip() for entry in entries]
    return discord.Embed(
        title=f"{Emojis.LINK} Quick Links",
        description="\n".join(lines) or "No quick links are enabled.",
        color=EmbedColor.DASHBOARD,
    ).set_footer(text=BrandingTheme.get_footer())
