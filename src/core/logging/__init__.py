"""
HomeLab bot logging infrastructure.

Exports the structured logging subsystem and its context helpers:
- queue-backed console/JSON logging configured from `BotConfig`
- ContextVar-based contextual logging (`LogContext`)
"""

from src.core.logging.logger import (
    LogContext,
    LoggerSettings,
    clear_log_context,
    get_logger,
    get_logging_metrics,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "get_logging_metrics",
    "LogContext",
    "LoggerSettings",
    "set_log_context",
    "clear_log_context",
]
