"""
Domain exceptions for the HomeLab bot.

Purpose
-------
Define the exception hierarchy raised by services for workflow rule
violations and user-facing failures. Cogs and views translate these into
error embeds through `ErrorResponseService`; nothing here knows about Discord.

Design Notes
------------
- All domain exceptions inherit from `HomelabDomainException` and carry the
  same structured metadata as the infrastructure hierarchy.
- `user_message` is the sentence shown to the person who triggered the
  action; `message` is what gets logged.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from src.core.exceptions import ErrorSeverity


class HomelabDomainException(Exception):
    """
    Base exception for all domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.INFO
    DEFAULT_RETRYABLE: bool = False
    TITLE: str = "Something went wrong"

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

    @property
    def user_message(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
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


# ============================================================================
# Validation
# ============================================================================


class ValidationError(HomelabDomainException):
    """User input failed validation."""

    TITLE = "Invalid Input"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )

    @property
    def user_message(self) -> str:
        return self.validation_message


class UnknownServiceError(HomelabDomainException):
    """A service id is not part of the known enumeration."""

    TITLE = "Unknown Service"

    def __init__(self, service_id: str, known: Optional[list] = None) -> None:
        self.service_id = service_id
        super().__init__(
            f"Unknown service '{service_id}'",
            details={"service_id": service_id, "known": known or []},
            error_code="UNKNOWN_SERVICE",
        )


# ============================================================================
# Channel Configuration
# ============================================================================


class AdminChannelNotConfiguredError(HomelabDomainException):
    """An invite was requested but no admin channel is set."""

    TITLE = "Invites Unavailable"

    def __init__(self) -> None:
        super().__init__(
            "No admin channel is configured",
            error_code="ADMIN_CHANNEL_NOT_CONFIGURED",
        )

    @property
    def user_message(self) -> str:
        return (
            "Invite requests are not set up yet. "
            "Ask a server admin to configure an admin channel with `/admin set`."
        )


class DashboardChannelNotConfiguredError(HomelabDomainException):
    """A dashboard post was requested but no dashboard channel is set."""

    TITLE = "No Dashboard Channel"

    def __init__(self) -> None:
        super().__init__(
            "No dashboard channel is configured",
            error_code="DASHBOARD_CHANNEL_NOT_CONFIGURED",
        )

    @property
    def user_message(self) -> str:
        return "No dashboard channel is set. Use `/dashboard set` first."


# ============================================================================
# Invite Workflow
# ============================================================================


class InviteAlreadyPendingError(HomelabDomainException):
    """The requester already has a pending invite request."""

    TITLE = "Request Already Pending"

    def __init__(self, requester_id: int, service: str) -> None:
        self.requester_id = requester_id
        self.service = service
        super().__init__(
            f"Requester {requester_id} already has a pending {service} request",
            details={"requester_id": requester_id, "service": service},
            error_code="INVITE_ALREADY_PENDING",
        )

    @property
    def user_message(self) -> str:
        return (
            f"You already have a pending {self.service.title()} invite request. "
            "Please wait for an admin to review it."
        )


class InviteAlreadyProcessedError(HomelabDomainException):
    """An admin action arrived for a request that is no longer pending."""

    TITLE = "Already Processed"

    def __init__(self, requester_id: int) -> None:
        self.requester_id = requester_id
        super().__init__(
            f"Invite request for {requester_id} was already processed",
            details={"requester_id": requester_id},
            error_code="INVITE_ALREADY_PROCESSED",
        )

    @property
    def user_message(self) -> str:
        return "This invite request has already been processed or has expired."


class InviteIssuanceError(HomelabDomainException):
    """The invite-issuing service failed; the request stays pending."""

    TITLE = "Invite Creation Failed"
    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, requester_id: int, reason: str) -> None:
        self.requester_id = requester_id
        self.reason = reason
        super().__init__(
            f"Invite issuance failed for {requester_id}: {reason}",
            details={"requester_id": requester_id, "reason": reason},
            error_code="INVITE_ISSUANCE_FAILED",
        )

    @property
    def user_message(self) -> str:
        return (
            f"Could not create the invite: {self.reason}\n"
            "The request is still pending, so you can retry the approval."
        )


class InvitePromptDeliveryError(HomelabDomainException):
    """The approval prompt could not be posted to the admin channel."""

    TITLE = "Request Not Sent"
    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, channel_id: int, reason: str) -> None:
        self.channel_id = channel_id
        super().__init__(
            f"Could not post invite prompt to channel {channel_id}: {reason}",
            details={"channel_id": channel_id, "reason": reason},
            error_code="INVITE_PROMPT_DELIVERY_FAILED",
        )

    @property
    def user_message(self) -> str:
        return "Your request could not be delivered to the admins. Please try again or contact an admin."


# ============================================================================
# Live Updates
# ============================================================================


class LiveUpdatesAlreadyRunningError(HomelabDomainException):
    TITLE = "Live Updates Running"

    def __init__(self, channel_id: int) -> None:
        self.channel_id = channel_id
        super().__init__(
            f"Live updates are already running in channel {channel_id}",
            details={"channel_id": channel_id},
            error_code="LIVE_UPDATES_ALREADY_RUNNING",
        )

    @property
    def user_message(self) -> str:
        return f"Live updates are already running in <#{self.channel_id}>. Use `/stop` first."


class LiveUpdatesNotRunningError(HomelabDomainException):
    TITLE = "Live Updates Not Running"

    def __init__(self) -> None:
        super().__init__("No live updates are running", error_code="LIVE_UPDATES_NOT_RUNNING")
