"""
JSON file backend.

Each document is `<data_dir>/<name>.json`. Writes go to a temporary file in
the same directory and are moved into place with `os.replace`, so a crash
mid-write leaves the previous document intact. File I/O runs in a worker
thread to keep the event loop responsive; saves of one document are
serialized so they land on disk in call order.

A document that exists but cannot be parsed is moved aside to
`<name>.json.corrupt` and treated as absent.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from src.core.exceptions import StorageError
from src.core.logging.logger import get_logger
from src.core.storage.base import DocumentStore

logger = get_logger(__name__)


class JsonFileStore(DocumentStore):
    def __init__(self, data_dir: Path) -> None:
        self._dir = Path(data_dir)
        self._locks: Dict[str, asyncio.Lock] = {}

    def path_for(self, name: str) -> Path:
        return self._dir / f"{name}.json"

    async def initialize(self) -> None:
        try:
            await asyncio.to_thread(self._dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError("initialize", exc) from exc
        logger.info("✓ JSON state store ready", extra={"data_dir": str(self._dir)})

    async def load(self, name: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._read, name)

    async def save(self, name: str, data: Dict[str, Any]) -> None:
        async with self._locks.setdefault(name, asyncio.Lock()):
            await asyncio.to_thread(self._write, name, data)

    def _read(self, name: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"load {name}", exc) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            backup = path.with_name(path.name + ".corrupt")
            logger.error(
                "Corrupt state document moved aside",
                extra={
                    "document": name,
                    "backup": str(backup),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            os.replace(path, backup)
            return None

        if not isinstance(data, dict):
            logger.warning(
                "Ignoring state document with non-object root",
                extra={"document": name, "root_type": type(data).__name__},
            )
            return None
        return data

    def _write(self, name: str, data: Dict[str, Any]) -> None:
        path = self.path_for(name)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, indent=2, ensure_ascii=False)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"save {name}", exc) from exc

        logger.debug("State document saved", extra={"document": name, "path": str(path)})
