"""
HomeLab bot logging subsystem.

Purpose
-------
Provide async-safe, structured logging for the bot process:

- LogContext-based propagation of command/operation context via ContextVars.
- Correlation IDs so one command, button press, or refresh tick can be
  followed across services.
- A QueueHandler + QueueListener pair so handler I/O never blocks the event
  loop; the queue is bounded and drops (and counts) records when full.
- Console output (colored text in development, JSON in production) plus a
  daily rotating JSON file for local backup.

Responsibilities
----------------
- Configure the root logger from the resolved `BotConfig`.
- Enrich every record with user_id, guild_id, command, correlation_id,
  component and operation.
- Merge `extra={...}` fields into JSON output.
- Offer `get_logger`, `LogContext`, `set_log_context`, `clear_log_context`.

Design Notes
------------
- Modules call `get_logger(__name__)` at import time; records emitted before
  `setup_logging` runs go to Python's last-resort handler.
- `setup_logging` is idempotent; `shutdown_logging` drains the queue.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from src.core.config.config import BotConfig


# ============================================================================
# Request / Operation Context (ContextVars)
# ============================================================================

_request_context: ContextVar[Dict[str, Any]] = ContextVar(
    "request_context",
    default={},
)


# ============================================================================
# Settings
# ============================================================================


@dataclass(frozen=True, slots=True)
class LoggerSettings:
    """Logging settings derived from `BotConfig`."""

    log_level: int = logging.INFO
    use_json: bool = False
    use_colors: bool = True
    logs_dir: Optional[Path] = None
    environment: str = "development"

    CONSOLE_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"
    DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    DAILY_BASENAME: str = "homelab_daily.json.log"
    DAILY_BACKUP_COUNT: int = 1
    QUEUE_MAX_SIZE: int = 10_000

    @classmethod
    def from_config(cls, config: "BotConfig") -> "LoggerSettings":
        use_json = config.log_json if config.log_json is not None else config.is_production
        return cls(
            log_level=getattr(logging, config.log_level.upper(), logging.INFO),
            use_json=use_json,
            use_colors=not use_json and sys.stdout.isatty(),
            logs_dir=config.logs_dir,
            environment=config.environment.value,
        )


@dataclass(slots=True)
class LoggingMetrics:
    records_enqueued: int = 0
    records_dropped: int = 0
    listener_errors: int = 0


_logging_metrics: LoggingMetrics = LoggingMetrics()
_queue_listener: Optional[QueueListener] = None


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context: Dict[str, Any] = _request_context.get({})

        record.user_id = context.get("user_id", "N/A")
        record.guild_id = context.get("guild_id", "N/A")
        record.command = context.get("command", "N/A")
        record.correlation_id = context.get("correlation_id") or "N/A"
        record.component = context.get("component") or record.name.rsplit(".", 1)[-1]
        record.operation = context.get("operation") or "N/A"
        return True


class ColoredFormatter(logging.Formatter):
    COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        original = record.levelname
        prefix = self.COLORS.get(original)
        if prefix:
            record.levelname = f"{prefix}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    STANDARD_ATTRS = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    ) | {"message", "asctime", "taskName"}

    CONTEXT_ATTRS = frozenset(
        {"user_id", "guild_id", "command", "correlation_id", "component", "operation"}
    )

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)

        log_data: Dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        for attr in self.CONTEXT_ATTRS:
            value = getattr(record, attr, None)
            if value not in (None, "N/A"):
                log_data[attr] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {
            key: val
            for key, val in record.__dict__.items()
            if key not in self.STANDARD_ATTRS
            and key not in self.CONTEXT_ATTRS
            and not key.startswith("_")
        }
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, ensure_ascii=False, default=str)


# ============================================================================
# Queue Handler & Listener
# ============================================================================


class BoundedQueueHandler(QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _logging_metrics.records_enqueued += 1
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _logging_metrics.records_dropped += 1


class CountingQueueListener(QueueListener):
    def handleError(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _logging_metrics.listener_errors += 1


# ============================================================================
# Global Setup
# ============================================================================


def _build_console_handler(settings: LoggerSettings) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(settings.log_level)

    if settings.use_json:
        handler.setFormatter(JSONFormatter())
    elif settings.use_colors:
        handler.setFormatter(ColoredFormatter(settings.CONSOLE_FORMAT, settings.DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(settings.CONSOLE_FORMAT, settings.DATE_FORMAT))
    return handler


def _build_daily_file_handler(settings: LoggerSettings, logs_dir: Path) -> logging.Handler:
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(logs_dir / settings.DAILY_BASENAME),
        when="midnight",
        interval=1,
        backupCount=settings.DAILY_BACKUP_COUNT,
        encoding="utf-8",
        utc=True,
    )
    handler.setLevel(settings.log_level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(config: Optional["BotConfig"] = None) -> None:
    """Install the queue-backed handlers on the root logger (idempotent)."""
    global _queue_listener, _logging_metrics

    root = logging.getLogger()
    if getattr(root, "_homelab_logging_initialized", False):
        return

    settings = LoggerSettings.from_config(config) if config is not None else LoggerSettings()
    _logging_metrics = LoggingMetrics()

    root.setLevel(settings.log_level)
    root.handlers.clear()

    handlers = [_build_console_handler(settings)]
    if settings.logs_dir is not None:
        handlers.append(_build_daily_file_handler(settings, settings.logs_dir))

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(settings.QUEUE_MAX_SIZE)
    _queue_listener = CountingQueueListener(log_queue, *handlers, respect_handler_level=True)
    _queue_listener.start()

    queue_handler = BoundedQueueHandler(log_queue)
    queue_handler.setLevel(settings.log_level)
    queue_handler.addFilter(ContextFilter())
    root.addHandler(queue_handler)

    for noisy in ("discord", "discord.http", "discord.gateway", "discord.client", "httpx", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    setattr(root, "_homelab_logging_initialized", True)

    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": settings.environment,
            "log_level": logging.getLevelName(settings.log_level),
            "json": settings.use_json,
            "logs_dir": str(settings.logs_dir) if settings.logs_dir else None,
        },
    )


def shutdown_logging() -> None:
    """Stop the queue listener and flush handlers."""
    global _queue_listener

    root = logging.getLogger()
    if not getattr(root, "_homelab_logging_initialized", False):
        return

    logging.getLogger(__name__).info(
        "Shutting down logging subsystem",
        extra={"records_dropped": _logging_metrics.records_dropped},
    )

    if _queue_listener is not None:
        _queue_listener.stop()
        for handler in _queue_listener.handlers:
            handler.flush()
            handler.close()
        _queue_listener = None

    for handler in list(root.handlers):
        root.removeHandler(handler)

    setattr(root, "_homelab_logging_initialized", False)


def get_logging_metrics() -> LoggingMetrics:
    return _logging_metrics


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Scoped logging context, usable as a sync or async context manager.

    Example
    -------
    >>> async with LogContext(user_id=1, command="invite", operation="request"):
    ...     logger.info("Invite requested")
    """

    def __init__(
        self,
        user_id: Optional[int] = None,
        guild_id: Optional[int] = None,
        command: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        self.context: Dict[str, Any] = {
            "user_id": str(user_id) if user_id is not None else "N/A",
            "guild_id": str(guild_id) if guild_id is not None else "N/A",
            "command": command or "N/A",
            "component": component,
            "operation": operation,
            "correlation_id": correlation_id or str(uuid.uuid4())[:8],
            **extra,
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _request_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(**fields: Any) -> None:
    """Merge fields into the current context (None values are ignored)."""
    current = _request_context.get({}).copy()
    for key, value in fields.items():
        if value is None:
            continue
        current[key] = str(value) if key in ("user_id", "guild_id") else value
    _request_context.set(current)


def clear_log_context() -> None:
    _request_context.set({})
