"""
Quick-link service catalogue.

Purpose
-------
Load the fixed enumeration of self-hosted services the dashboard can render
as quick-link buttons, and which admins toggle on and off.

Responsibilities
----------------
- Parse the YAML catalogue (packaged default or `SERVICES_FILE` override)
- Resolve each entry's URL inline or from the environment
- Preserve declaration order (it is the rendering order)

Non-Responsibilities
--------------------
- Which services are enabled (DashboardSettingsService owns the selection)
- Upstream health of the linked services (status clients)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Optional, Tuple

import yaml

from src.core.exceptions import ConfigurationError
from src.core.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOGUE_PATH = Path(__file__).with_name("services.yaml")


@dataclass(frozen=True, slots=True)
class CatalogueEntry:
    id: str
    label: str
    emoji: str = ""
    url: str = ""

    @property
    def has_link(self) -> bool:
        return bool(self.url)


class ServiceCatalogue:
    """Ordered, read-only collection of `CatalogueEntry` keyed by id."""

    def __init__(self, entries: Tuple[CatalogueEntry, ...]) -> None:
        self._entries = entries
        self._by_id = {entry.id: entry for entry in entries}

    def __iter__(self) -> Iterator[CatalogueEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, service_id: object) -> bool:
        return service_id in self._by_id

    def get(self, service_id: str) -> Optional[CatalogueEntry]:
        return self._by_id.get(service_id)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(entry.id for entry in self._entries)


def load_catalogue(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ServiceCatalogue:
    """
    Load the catalogue from YAML.

    Raises
    ------
    ConfigurationError
        If the file is missing, unparsable, or contains duplicate ids.
    """
    source = path or DEFAULT_CATALOGUE_PATH
    env = os.environ if env is None else env

    try:
        with source.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError("SERVICES_FILE", f"cannot read {source}: {exc}") from exc

    raw_entries = data.get("services", []) if isinstance(data, dict) else []
    entries = []
    seen = set()

    for raw in raw_entries:
        if not isinstance(raw, dict) or not raw.get("id"):
            logger.warning(
                "Ignoring malformed catalogue entry",
                extra={"file": str(source), "entry": repr(raw)},
            )
            continue

        service_id = str(raw["id"]).strip().lower()
        if service_id in seen:
            raise ConfigurationError("SERVICES_FILE", f"duplicate service id '{service_id}'")
        seen.add(service_id)

        url = str(raw.get("url") or "").strip()
        url_env = raw.get("url_env")
        if not url and url_env:
            url = env.get(str(url_env), "").strip()

        entries.append(
            CatalogueEntry(
                id=service_id,
                label=str(raw.get("label") or service_id),
                emoji=str(raw.get("emoji") or ""),
                url=url,
            )
        )

    logger.info(
        "Service catalogue loaded",
        extra={
            "file": str(source),
            "services": len(entries),
            "with_links": sum(1 for e in entries if e.has_link),
        },
    )
    return ServiceCatalogue(tuple(entries))
