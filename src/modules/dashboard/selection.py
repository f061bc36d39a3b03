"""Which catalogue services the dashboard renders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional, Tuple

from src.core.config.catalogue import ServiceCatalogue
from src.modules.shared.exceptions import UnknownServiceError

ALL_SERVICES = "all"


@dataclass(frozen=True, slots=True)
class EnabledServiceSelection:
    """
    Either every service (`services is None`) or an explicit set of ids.

    Toggling one service off while everything is enabled converts the
    selection to every catalogue id except that one. Enable-all always
    returns to the sentinel.
    """

    services: Optional[FrozenSet[str]] = None

    @classmethod
    def all(cls) -> "EnabledServiceSelection":
        return cls(None)

    @classmethod
    def of(cls, ids: Iterable[str]) -> "EnabledServiceSelection":
        return cls(frozenset(ids))

    @property
    def is_all(self) -> bool:
        return self.services is None

    def is_enabled(self, service_id: str) -> bool:
        return self.services is None or service_id in self.services

    def toggle(self, service_id: str, catalogue: ServiceCatalogue) -> "EnabledServiceSelection":
        if service_id not in catalogue:
            raise UnknownServiceError(service_id, known=list(catalogue.ids))

        if self.services is None:
            return EnabledServiceSelection.of(i for i in catalogue.ids if i != service_id)
        if service_id in self.services:
            return EnabledServiceSelection(self.services - {service_id})
        return EnabledServiceSelection(self.services | {service_id})

    def enable_all(self) -> "EnabledServiceSelection":
        return EnabledServiceSelection.all()

    def disable_all(self) -> "EnabledServiceSelection":
        return EnabledServiceSelection(frozenset())

    def enabled_ids(self, catalogue: ServiceCatalogue) -> Tuple[str, ...]:
        """Enabled ids in catalogue order."""
        return tuple(i for i in catalogue.ids if self.is_enabled(i))

    def to_record(self) -> Any:
        if self.services is None:
            return ALL_SERVICES
        return sorted(self.services)

    @classmethod
    def from_record(cls, value: Any) -> "EnabledServiceSelection":
        if value is None or value == ALL_SERVICES:
            return cls.all()
        if isinstance(value, (list, tuple)):
            return cls.of(str(v) for v in value)
        return cls.all()
