"""
Infrastructure exceptions for the HomeLab bot.

Purpose
-------
Define the structured exception hierarchy for infrastructure-level concerns:
configuration, persistence, upstream HTTP integrations and chat transport
failures.

Design Notes
------------
- All infrastructure exceptions inherit from `HomelabInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- Upstream exceptions never cross the Service Status Cache; the cache turns
  them into `offline`/`disabled`/`error` snapshots.
- Transport exceptions are raised by the Discord adapters so that the core
  can tell "message gone" apart from any other delivery failure.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class HomelabInfrastructureException(Exception):
    """
    Base exception for all infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


# ============================================================================
# Configuration
# ============================================================================


class ConfigurationError(HomelabInfrastructureException):
    """Raised when a configuration key is invalid or missing."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="CONFIG_ERROR",
        )


# ============================================================================
# Persistence
# ============================================================================


class StorageError(HomelabInfrastructureException):
    """Raised when a state repository cannot read or write."""

    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: Exception) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Storage error during {operation}: {original_error}",
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="STORAGE_ERROR",
        )


# ============================================================================
# Upstream Integrations
# ============================================================================


class IntegrationNotConfiguredError(HomelabInfrastructureException):
    """
    Raised when an upstream integration has no URL or credentials.

    Expected and static: the status cache renders it as `disabled`.
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG

    def __init__(self, service: str) -> None:
        self.service = service
        super().__init__(
            f"{service} not configured",
            details={"service": service},
            error_code="INTEGRATION_NOT_CONFIGURED",
        )


class UpstreamError(HomelabInfrastructureException):
    """Base for failures talking to an upstream service."""

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, service: str, message: str, **details: Any) -> None:
        self.service = service
        super().__init__(
            f"{service}: {message}",
            details={"service": service, **details},
        )


class UpstreamUnavailableError(UpstreamError):
    """Timeout or connection failure: the service could not be reached."""


class UpstreamResponseError(UpstreamError):
    """The service answered with a non-2xx status or an unusable body."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(service, message, status_code=status_code)


# ============================================================================
# Chat Transport
# ============================================================================


class TransportError(HomelabInfrastructureException):
    """A message create/edit/DM call against the chat platform failed."""

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True


class MessageNotFoundError(TransportError):
    """The platform confirmed the target message (or channel) no longer exists."""

    DEFAULT_RETRYABLE = False

    def __init__(self, channel_id: int, message_id: Optional[int] = None) -> None:
        self.channel_id = channel_id
        self.message_id = message_id
        super().__init__(
            f"Message {message_id} in channel {channel_id} not found",
            details={"channel_id": channel_id, "message_id": message_id},
            error_code="MESSAGE_NOT_FOUND",
        )


# ============================================================================
# Helpers
# ============================================================================


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """Severity for logging; unknown exceptions are ERROR."""
    severity = getattr(exc, "severity", None)
    if isinstance(severity, ErrorSeverity):
        return severity
    return ErrorSeverity.ERROR
