"""
HomeLab Shared Module

Purpose
-------
Domain-level foundations shared by the feature modules:
- Domain exceptions with user-facing titles and messages
- BaseService with config access and structured operation logging

Architecture
------------
- Domain layer only: no Discord imports, no upstream HTTP
- Infrastructure failures live in `src.core.exceptions`; the exceptions here
  describe rule violations a user can act on

Usage
-----
    from src.modules.shared import BaseService, InviteAlreadyPendingError
"""

from __future__ import annotations

from .base_service import BaseService
from .exceptions import (
    AdminChannelNotConfiguredError,
    DashboardChannelNotConfiguredError,
    HomelabDomainException,
    InviteAlreadyPendingError,
    InviteAlreadyProcessedError,
    InviteIssuanceError,
    InvitePromptDeliveryError,
    LiveUpdatesAlreadyRunningError,
    LiveUpdatesNotRunningError,
    UnknownServiceError,
    ValidationError,
)

__all__ = [
    "BaseService",
    "HomelabDomainException",
    "ValidationError",
    "UnknownServiceError",
    "AdminChannelNotConfiguredError",
    "DashboardChannelNotConfiguredError",
    "InviteAlreadyPendingError",
    "InviteAlreadyProcessedError",
    "InviteIssuanceError",
    "InvitePromptDeliveryError",
    "LiveUpdatesAlreadyRunningError",
    "LiveUpdatesNotRunningError",
]
