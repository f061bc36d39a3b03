"""
Error Response Service.

Purpose
-------
Turn any exception raised under a command or button into the structure the
presentation layer renders as an error embed.

Responsibilities
----------------
- Domain exceptions: their own `TITLE` and `user_message`, plus help text
- Infrastructure exceptions: a generic, non-leaking description
- Anything else: a fallback that still gives the user an answer

Non-Responsibilities
--------------------
- Logging (handled by cogs/views and the bot's error handler)
- Discord embed creation (delegated to EmbedFactory)
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type

from src.core.exceptions import (
    ErrorSeverity,
    HomelabInfrastructureException,
    StorageError,
    TransportError,
)
from src.modules.shared.exceptions import (
    AdminChannelNotConfiguredError,
    DashboardChannelNotConfiguredError,
    HomelabDomainException,
    InviteAlreadyPendingError,
    InviteIssuanceError,
    InvitePromptDeliveryError,
    LiveUpdatesNotRunningError,
    UnknownServiceError,
    ValidationError,
)

HELP_TEXT: Dict[Type[BaseException], str] = {
    AdminChannelNotConfiguredError: "An administrator can run `/admin set #channel`.",
    DashboardChannelNotConfiguredError: "Run `/dashboard set #channel` to choose where the dashboard lives.",
    InviteAlreadyPendingError: "You'll get a DM as soon as an admin responds.",
    InviteIssuanceError: "Press Approve again once Wizarr is reachable.",
    InvitePromptDeliveryError: "Check that the bot can post in the admin channel.",
    LiveUpdatesNotRunningError: "Start a live board with `/live`.",
    UnknownServiceError: "Valid choices are listed in the command's autocomplete.",
    ValidationError: "Check your input and try again.",
    StorageError: "Settings could not be saved. Try again in a moment.",
    TransportError: "Discord rejected the request. Check the bot's channel permissions.",
}


class ErrorResponseService:
    """Formats exceptions into `{title, description, help_text, severity}`."""

    def format_error(self, error: BaseException) -> Dict[str, Any]:
        """
        Example:
            >>> ErrorResponseService().format_error(DashboardChannelNotConfiguredError())
            {'title': 'No Dashboard Channel', 'description': 'No dashboard channel is set...', ...}
        """
        if isinstance(error, HomelabDomainException):
            return {
                "title": error.TITLE,
                "description": error.user_message,
                "help_text": self._help_for(error),
                "severity": error.severity,
            }

        if isinstance(error, HomelabInfrastructureException):
            return {
                "title": "Service Problem",
                "description": "A backing service failed while handling this request.",
                "help_text": self._help_for(error) or "Please try again in a moment.",
                "severity": error.severity,
            }

        return {
            "title": "Something Went Wrong",
            "description": "An unexpected error occurred.",
            "help_text": "The issue has been logged. If this persists, contact an admin.",
            "severity": ErrorSeverity.ERROR,
        }

    @staticmethod
    def _help_for(error: BaseException) -> Optional[str]:
        for exc_type in type(error).__mro__:
            if exc_type in HELP_TEXT:
                return HELP_TEXT[exc_type]
        return None
