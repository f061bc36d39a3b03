"""
Document store interface.

Contract
--------
- `load(name)` returns the stored mapping, or `None` when nothing was ever
  saved (first run). Absence is never an error.
- `save(name, data)` durably replaces the whole document before returning.
- Backend failures raise `StorageError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from src.core.config.config import BotConfig


class DocumentStore(ABC):
    @abstractmethod
    async def load(self, name: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def save(self, name: str, data: Dict[str, Any]) -> None: ...

    async def initialize(self) -> None:
        """Prepare the backend (create directories or tables)."""

    async def close(self) -> None:
        """Release backend resources."""


def build_document_store(config: BotConfig) -> DocumentStore:
    """Pick the backend named by `STATE_BACKEND`."""
    from src.core.config.config import StateBackend

    if config.state_backend is StateBackend.SQL:
        from src.core.storage.sql_store import SqlDocumentStore

        return SqlDocumentStore(config.resolved_database_url, echo=config.database_echo)

    from src.core.storage.json_store import JsonFileStore

    return JsonFileStore(config.data_dir)
