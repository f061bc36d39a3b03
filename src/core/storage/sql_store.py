"""
SQLAlchemy backend.

One `state_documents` row per document, payload stored as JSON. Works with
any SQLAlchemy async URL; the default is `sqlite+aiosqlite` in DATA_DIR.

Transaction Model
-----------------
- `save` runs in its own transaction: commit on success, rollback on any
  exception (via `session.begin()`).
- The table is created on `initialize()`; there are no migrations.
- Saves of one document are serialized so they commit in call order.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.exceptions import StorageError
from src.core.logging.logger import get_logger
from src.core.storage.base import DocumentStore

logger = get_logger(__name__)


class StateBase(DeclarativeBase):
    pass


class StateDocument(StateBase):
    """One persisted state document keyed by name."""

    __tablename__ = "state_documents"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class SqlDocumentStore(DocumentStore):
    def __init__(self, url: str, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def url_scheme(self) -> str:
        return self._url.split(":", 1)[0] if ":" in self._url else "unknown"

    async def initialize(self) -> None:
        if self._engine is not None:
            return
        try:
            self._engine = create_async_engine(self._url, echo=self._echo)
            self._session_factory = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            async with self._engine.begin() as conn:
                await conn.run_sync(StateBase.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "SQL state store initialization failed",
                extra={
                    "url_scheme": self.url_scheme,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise StorageError("initialize", exc) from exc

        logger.info("✓ SQL state store ready", extra={"url_scheme": self.url_scheme})

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise StorageError("session", RuntimeError("SqlDocumentStore is not initialized"))
        return self._session_factory

    async def load(self, name: str) -> Optional[Dict[str, Any]]:
        try:
            async with self._sessions()() as session:
                row = await session.get(StateDocument, name)
                return dict(row.payload) if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageError(f"load {name}", exc) from exc

    async def save(self, name: str, data: Dict[str, Any]) -> None:
        try:
            async with self._locks.setdefault(name, asyncio.Lock()), self._sessions()() as session:
                async with session.begin():
                    await session.merge(
                        StateDocument(
                            name=name,
                            payload=data,
                            updated_at=datetime.now(timezone.utc),
                        )
                    )
        except SQLAlchemyError as exc:
            raise StorageError(f"save {name}", exc) from exc

        logger.debug("State document saved", extra={"document": name})

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("SQL state store closed")
