"""
Shared HTTP access for upstream integrations.

Purpose
-------
Wrap one `httpx.AsyncClient` with a bounded timeout and translate transport
failures into the infrastructure exception hierarchy, so every integration
client raises the same two things:

- `UpstreamUnavailableError`: timeout, DNS failure, connection refused
- `UpstreamResponseError`: non-2xx status or a body that is not JSON

Integration clients never see raw httpx exceptions, and the status cache
never sees them either.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from src.core.exceptions import UpstreamResponseError, UpstreamUnavailableError
from src.core.logging.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = "homelab-dashboard-bot"


class UpstreamHttp:
    """
    Thin async HTTP client for upstream services.

    Args:
        timeout: Overall request timeout in seconds
        transport: Optional custom transport (Unix socket, `httpx.MockTransport` in tests)
        base_url: Optional base URL prefixed to relative request paths
        verify: TLS certificate verification (self-signed hypervisor certs need False)

    Example:
        http = UpstreamHttp(timeout=10)
        data = await http.get_json("radarr", "http://radarr:7878/api/v3/system/status")
    """

    def __init__(
        self,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_url: str = "",
        verify: bool = True,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            verify=verify,
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
            transport=transport,
            base_url=base_url,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    async def request(self, service: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError(service, f"timed out after {self.timeout:g}s") from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailableError(service, f"connection failed ({type(exc).__name__})") from exc

        if response.is_error:
            logger.debug(
                "Upstream returned error status",
                extra={"service": service, "status_code": response.status_code, "url": str(response.url)},
            )
            raise UpstreamResponseError(
                service,
                f"HTTP {response.status_code} {response.reason_phrase}".strip(),
                status_code=response.status_code,
            )
        return response

    async def request_json(self, service: str, method: str, url: str, **kwargs: Any) -> Any:
        response = await self.request(service, method, url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamResponseError(service, "response was not valid JSON", response.status_code) from exc

    async def get_json(self, service: str, url: str, **kwargs: Any) -> Any:
        return await self.request_json(service, "GET", url, **kwargs)

    async def post_json(self, service: str, url: str, **kwargs: Any) -> Any:
        return await self.request_json(service, "POST", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
