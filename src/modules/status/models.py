"""
Status data model.

- `ServiceSnapshot`: one integration's point-in-time result. Exactly one of
  `payload` (online) or `message` (offline/disabled/error) is meaningful;
  the factory classmethods enforce this.
- `DashboardSnapshot`: the immutable composite of one aggregation cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


class Integration(str, Enum):
    ARR = "arr"
    DOCKER = "docker"
    MEDIA = "media"
    DOWNLOADS = "downloads"
    CLUSTER = "cluster"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Integration.ARR: "ARR Stack",
    Integration.DOCKER: "Docker",
    Integration.MEDIA: "Media",
    Integration.DOWNLOADS: "Downloads",
    Integration.CLUSTER: "Proxmox Cluster",
}


class ServiceStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    DISABLED = "disabled"
    ERROR = "error"

    @property
    def is_failure(self) -> bool:
        return self in (ServiceStatus.OFFLINE, ServiceStatus.ERROR)


def _freeze(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(payload))


@dataclass(frozen=True, slots=True)
class ServiceSnapshot:
    integration: Integration
    status: ServiceStatus
    captured_at: float
    payload: Optional[Mapping[str, Any]] = None
    message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status is ServiceStatus.ONLINE:
            if self.payload is None:
                raise ValueError("online snapshot requires a payload")
            if not isinstance(self.payload, MappingProxyType):
                object.__setattr__(self, "payload", _freeze(self.payload))
        else:
            if not self.message:
                raise ValueError(f"{self.status.value} snapshot requires a message")
            if self.payload is not None:
                raise ValueError(f"{self.status.value} snapshot cannot carry a payload")

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def online(cls, integration: Integration, payload: Mapping[str, Any], captured_at: float) -> "ServiceSnapshot":
        return cls(integration, ServiceStatus.ONLINE, captured_at, payload=payload)

    @classmethod
    def offline(cls, integration: Integration, message: str, captured_at: float) -> "ServiceSnapshot":
        return cls(integration, ServiceStatus.OFFLINE, captured_at, message=message or "unreachable")

    @classmethod
    def disabled(cls, integration: Integration, message: str, captured_at: float) -> "ServiceSnapshot":
        return cls(integration, ServiceStatus.DISABLED, captured_at, message=message or "not configured")

    @classmethod
    def error(cls, integration: Integration, message: str, captured_at: float) -> "ServiceSnapshot":
        return cls(integration, ServiceStatus.ERROR, captured_at, message=message or "unknown error")

    @property
    def is_online(self) -> bool:
        return self.status is ServiceStatus.ONLINE

    def get(self, key: str, default: Any = None) -> Any:
        """Payload lookup that is safe on non-online snapshots."""
        if self.payload is None:
            return default
        return self.payload.get(key, default)


@dataclass(frozen=True, slots=True)
class DashboardSnapshot:
    services: Mapping[Integration, ServiceSnapshot]
    captured_at: float
    _order: Tuple[Integration, ...] = field(default=(), repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.services, MappingProxyType):
            object.__setattr__(self, "services", MappingProxyType(dict(self.services)))
        object.__setattr__(self, "_order", tuple(self.services.keys()))

    def __iter__(self) -> Iterator[ServiceSnapshot]:
        return iter(self.services[i] for i in self._order)

    def __len__(self) -> int:
        return len(self.services)

    def get(self, integration: Integration) -> Optional[ServiceSnapshot]:
        return self.services.get(integration)

    def online(self) -> Dict[Integration, ServiceSnapshot]:
        return {i: s for i, s in self.services.items() if s.is_online}

    def failed(self) -> Dict[Integration, ServiceSnapshot]:
        return {i: s for i, s in self.services.items() if s.status.is_failure}

    def summary(self) -> Dict[str, str]:
        return {i.value: s.status.value for i, s in self.services.items()}
