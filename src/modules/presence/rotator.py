"""
Rich-presence text for the bot's activity line.

`compose_presence` is pure: the same snapshot and index always produce the
same frame. The metric list is rebuilt on every call because integrations
come and go between ticks, so the rotation modulus changes with them.

    👥 3 watching | CPU: 12.5%
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from src.modules.status.clients.cluster import node_for_presence
from src.modules.status.models import DashboardSnapshot, Integration

DEFAULT_PRESENCE = "🏠 Monitoring HomeLab"
SEPARATOR = " | "


@dataclass(frozen=True, slots=True)
class PresenceFrame:
    text: str
    next_index: int


def viewer_count(snapshot: DashboardSnapshot) -> Optional[int]:
    """Streams across online media servers, or None when none is online."""
    media = snapshot.get(Integration.MEDIA)
    if media is None or not media.is_online:
        return None

    servers = [media.get(key) or {} for key in ("jellyfin", "plex")]
    online = [s for s in servers if s.get("status") == "online"]
    if not online:
        return None
    return sum(int(s.get("active_streams") or 0) for s in online)


def resource_metrics(snapshot: DashboardSnapshot, preferred_node: str) -> List[str]:
    """CPU/RAM/Disk of the hypervisor node, else the container count."""
    metrics: List[str] = []

    cluster = snapshot.get(Integration.CLUSTER)
    if cluster is not None and cluster.is_online:
        node = node_for_presence(list(cluster.get("nodes") or []), preferred_node)
        if node is not None and node.get("status") == "online":
            for label, key in (("CPU", "cpu_percent"), ("RAM", "memory_percent"), ("Disk", "disk_percent")):
                value = node.get(key)
                if value is not None:
                    metrics.append(f"{label}: {value:.1f}%")

    if not metrics:
        docker = snapshot.get(Integration.DOCKER)
        if docker is not None and docker.is_online:
            metrics.append(f"🐳 {docker.get('running', 0)}/{docker.get('total', 0)} containers")

    return metrics


def compose_presence(snapshot: Optional[DashboardSnapshot], index: int, preferred_node: str = "pve") -> PresenceFrame:
    if snapshot is None:
        return PresenceFrame(DEFAULT_PRESENCE, 0)

    parts: List[str] = []
    viewers = viewer_count(snapshot)
    if viewers is not None:
        parts.append(f"👥 {viewers} watching")

    metrics = resource_metrics(snapshot, preferred_node)
    next_index = 0
    if metrics:
        position = index % len(metrics)
        parts.append(metrics[position])
        next_index = (position + 1) % len(metrics)

    if not parts:
        return PresenceFrame(DEFAULT_PRESENCE, next_index)
    return PresenceFrame(SEPARATOR.join(parts), next_index)


class PresenceRotator:
    """Tracks the rotation index and suppresses repeated pushes."""

    def __init__(self, preferred_node: str = "pve") -> None:
        self.preferred_node = preferred_node
        self.index = 0
        self.last_pushed: Optional[str] = None

    def next_update(self, snapshot: Optional[DashboardSnapshot]) -> Optional[str]:
        """Text to push, or None when it matches what is already shown."""
        frame = compose_presence(snapshot, self.index, self.preferred_node)
        self.index = frame.next_index
        if frame.text == self.last_pushed:
            return None
        return frame.text

    def mark_pushed(self, text: str) -> None:
        self.last_pushed = text
