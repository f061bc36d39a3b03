"""
Wizarr invite issuer.

Creates a single-use, time-limited invitation for one media server through
Wizarr's REST API and returns the join URL.
"""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping

from src.core.config.config import BotConfig, ServiceEndpoint
from src.core.exceptions import IntegrationNotConfiguredError, UpstreamResponseError
from src.core.http import UpstreamHttp
from src.core.logging.logger import get_logger
from src.core.scheduler.base import Scheduler
from src.modules.invite.models import IssuedInvite, MediaService

logger = get_logger(__name__)

_CODE_ALPHABET = string.ascii_lowercase + string.digits


class WizarrClient:
    """
    Args:
        endpoint: Wizarr base URL and API key
        http: Shared upstream HTTP client
        scheduler: Clock source for codes and expiry timestamps
        server_ids: Wizarr server id per media service
        invite_lifetime: How long the issued link stays valid
    """

    def __init__(
        self,
        endpoint: ServiceEndpoint,
        http: UpstreamHttp,
        scheduler: Scheduler,
        server_ids: Mapping[MediaService, int],
        invite_lifetime: timedelta,
    ) -> None:
        self.endpoint = endpoint
        self.http = http
        self.scheduler = scheduler
        self.server_ids = dict(server_ids)
        self.invite_lifetime = invite_lifetime

    @classmethod
    def from_config(cls, config: BotConfig, http: UpstreamHttp, scheduler: Scheduler) -> "WizarrClient":
        return cls(
            config.wizarr,
            http,
            scheduler,
            server_ids={
                MediaService.PLEX: config.wizarr_plex_server_id,
                MediaService.JELLYFIN: config.wizarr_jellyfin_server_id,
            },
            invite_lifetime=timedelta(days=config.wizarr_invite_days),
        )

    @property
    def configured(self) -> bool:
        return bool(self.endpoint.url and self.endpoint.api_key)

    def _new_code(self) -> str:
        suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(9))
        return f"discord_{int(self.scheduler.now() * 1000)}_{suffix}"

    def _request_body(self, service: MediaService) -> Dict[str, Any]:
        now = datetime.fromtimestamp(self.scheduler.now(), tz=timezone.utc)
        expires = (now + self.invite_lifetime).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return {
            "server_ids": [self.server_ids[service]],
            "code": self._new_code(),
            "used": False,
            "unlimited": False,
            "users": [],
            "libraries": [],
            "expiresAt": expires,
        }

    async def create_invite(self, name: str, service: "MediaService | str") -> IssuedInvite:
        """
        Create an invitation for `service` on behalf of `name`.

        Raises:
            IntegrationNotConfiguredError: Wizarr URL or API key missing
            UnknownServiceError: Service is not a media server
            UpstreamError: Wizarr unreachable or rejected the request
        """
        if not self.configured:
            raise IntegrationNotConfiguredError("Wizarr")
        service = MediaService.parse(service)

        body = self._request_body(service)
        data = await self.http.post_json(
            "Wizarr",
            f"{self.endpoint.base_url}/api/invitations",
            json=body,
            headers={"X-API-Key": self.endpoint.api_key, "Accept": "application/json"},
        )

        invitation = (data or {}).get("invitation") if isinstance(data, dict) else None
        if not invitation or not invitation.get("code"):
            raise UpstreamResponseError("Wizarr", "response did not include an invitation")

        code = invitation["code"]
        url = invitation.get("url") or f"{self.endpoint.base_url}/j/{code}"
        logger.info(
            "Wizarr invite created",
            extra={"service": service.value, "invite_name": name, "code": code},
        )
        return IssuedInvite(code=code, url=url, expires_at=invitation.get("expires") or body["expiresAt"])
