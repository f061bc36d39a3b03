"""
Invite data model.

`InviteRequest` is immutable; state changes replace it. The persisted record
uses camelCase keys so state files written by earlier deployments load
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from src.modules.shared.exceptions import UnknownServiceError


class MediaService(str, Enum):
    PLEX = "plex"
    JELLYFIN = "jellyfin"

    @property
    def label(self) -> str:
        return "Plex" if self is MediaService.PLEX else "Jellyfin"

    @property
    def emoji(self) -> str:
        return "🟠" if self is MediaService.PLEX else "🟣"

    @classmethod
    def parse(cls, value: "str | MediaService") -> "MediaService":
        if isinstance(value, MediaService):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownServiceError(str(value), known=[s.value for s in cls]) from None


class InviteState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class PromptRef:
    """Where the admin approval prompt for a request was posted."""

    channel_id: int
    message_id: int


@dataclass(frozen=True, slots=True)
class InviteRequest:
    requester_id: int
    requester_name: str
    service: MediaService
    justification: str
    created_at: datetime
    prompt: Optional[PromptRef] = None
    requester_display: str = ""

    def expires_at(self, window: timedelta) -> datetime:
        return self.created_at + window

    def is_expired(self, now: datetime, window: timedelta) -> bool:
        return now >= self.expires_at(window)

    def with_prompt(self, prompt: PromptRef) -> "InviteRequest":
        return replace(self, prompt=prompt)

    def to_record(self) -> Dict[str, Any]:
        return {
            "userId": str(self.requester_id),
            "username": self.requester_display,
            "name": self.requester_name,
            "service": self.service.value,
            "message": self.justification,
            "timestamp": int(self.created_at.timestamp() * 1000),
            "adminChannelId": str(self.prompt.channel_id) if self.prompt else None,
            "adminMessageId": str(self.prompt.message_id) if self.prompt else None,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "InviteRequest":
        prompt = None
        if record.get("adminChannelId") and record.get("adminMessageId"):
            prompt = PromptRef(int(record["adminChannelId"]), int(record["adminMessageId"]))
        return cls(
            requester_id=int(record["userId"]),
            requester_name=record.get("name", ""),
            service=MediaService.parse(record["service"]),
            justification=record.get("message", ""),
            created_at=datetime.fromtimestamp(int(record["timestamp"]) / 1000, tz=timezone.utc),
            prompt=prompt,
            requester_display=record.get("username", ""),
        )


@dataclass(frozen=True, slots=True)
class IssuedInvite:
    code: str
    url: str
    expires_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class InviteDecision:
    """Outcome of an admin action, used to resolve the prompt and notify the requester."""

    request: InviteRequest
    state: InviteState
    admin_id: Optional[int]
    invite: Optional[IssuedInvite] = None
    delivered: bool = True
