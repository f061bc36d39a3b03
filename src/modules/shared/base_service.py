"""
Base Service Foundation

Purpose
-------
Common base for the domain services (dashboard settings, publisher, invite
workflow, live updates). Services implement the workflow rules and state
transitions and raise domain exceptions; they never touch Discord types.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Access to the resolved `BotConfig`
- Small validation helpers that raise `ValidationError`

Usage
-----
    class InviteWorkflowService(BaseService):
        def __init__(self, config, repository, ..., logger):
            super().__init__(config, logger)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from src.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from src.core.config.config import BotConfig


class BaseService:
    """
    Base class for all domain services.

    Args:
        config: Resolved bot configuration
        logger: Structured logger instance
    """

    def __init__(self, config: BotConfig, logger: Logger) -> None:
        self.config = config
        self.log = logger

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log a service operation with structured context."""
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(self, operation: str, error: BaseException, **context: Any) -> None:
        """Log a service error with full context."""
        self.log.error(
            f"Service error during {operation}: {error}",
            extra={
                "operation": operation,
                "error": str(error),
                "error_type": type(error).__name__,
                **context,
            },
        )

    def validate_text(self, value: str, name: str, max_length: int) -> str:
        """
        Strip and validate a free-text field.

        Raises:
            ValidationError: If the value is empty or longer than max_length
        """
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValidationError(name, f"{name} cannot be empty")
        if len(cleaned) > max_length:
            raise ValidationError(name, f"{name} must be at most {max_length} characters")
        return cleaned
