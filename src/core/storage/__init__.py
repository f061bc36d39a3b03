"""
State storage for the HomeLab bot.

Persisted runtime state is a small set of named JSON documents:
`pending_invites`, `dashboard` and `admin`. Two interchangeable backends
implement `DocumentStore`:

- **json_store.py**: one `<name>.json` file per document (default)
- **sql_store.py**: one row per document through SQLAlchemy's async engine

Typed repositories wrapping a store live next to the services that own the
state (see `src.modules.invite.repository`, `src.modules.dashboard.settings`).
"""

from src.core.storage.base import DocumentStore, build_document_store
from src.core.storage.json_store import JsonFileStore
from src.core.storage.sql_store import SqlDocumentStore

__all__ = [
    "DocumentStore",
    "JsonFileStore",
    "SqlDocumentStore",
    "build_document_store",
]
