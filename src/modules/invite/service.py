"""
Invite Approval Workflow

Purpose
-------
Run the human-in-the-loop flow for media server access: a member requests an
invite, admins get a prompt with approve/deny buttons, and the outcome is
delivered back to the member.

Responsibilities
----------------
- Maintain the pending set (one request per requester) and persist it after
  every mutation
- Arm an expiry timer and a single-use action guard per request
- Approve: issue the invite through Wizarr, then resolve the prompt and
  notify the requester
- Deny: resolve the prompt and notify the requester
- Expire: drop silently, by timer or by a passive sweep
- Direct issuance by an admin (`invitegive`)

State Machine
-------------
    Pending -> Approved | Denied | Expired

Terminal states are never stored; reaching one removes the request.

Concurrency
-----------
- Only one admin action per request can be in flight (`OneShotRegistry`).
  A second click while the first is running, or after it finished, raises
  `InviteAlreadyProcessedError`.
- A failed issuance releases the claim and leaves the request pending so the
  admin can retry.
- Expiry never removes a request whose admin action is in flight; the
  action's outcome wins.
- Chat delivery (prompt edit, requester DM) is best effort after the state
  change has been persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from logging import Logger
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Set

from src.core.exceptions import HomelabInfrastructureException, StorageError, TransportError
from src.core.scheduler.base import ScheduledHandle, Scheduler
from src.modules.invite.models import (
    InviteDecision,
    InviteRequest,
    InviteState,
    IssuedInvite,
    MediaService,
    PromptRef,
)
from src.modules.invite.one_shot import OneShotRegistry
from src.modules.invite.repository import PendingInviteRepository
from src.modules.shared.base_service import BaseService
from src.modules.shared.exceptions import (
    AdminChannelNotConfiguredError,
    InviteAlreadyPendingError,
    InviteAlreadyProcessedError,
    InviteIssuanceError,
    InvitePromptDeliveryError,
)

if TYPE_CHECKING:
    from src.core.config.catalogue import ServiceCatalogue
    from src.core.config.config import BotConfig
    from src.modules.admin.service import AdminSettingsService

MAX_NAME_LENGTH = 100
MAX_JUSTIFICATION_LENGTH = 500


class InviteIssuer(Protocol):
    async def create_invite(self, name: str, service: MediaService) -> IssuedInvite: ...


class InviteNotifier(Protocol):
    """Chat-side effects of the workflow. Implementations raise `TransportError`."""

    async def post_prompt(self, channel_id: int, request: InviteRequest) -> PromptRef: ...

    async def resolve_prompt(self, decision: InviteDecision) -> None: ...

    async def notify_requester(self, decision: InviteDecision) -> None: ...

    async def send_direct_invite(
        self, target_id: int, service: MediaService, url: str, name: str, admin_name: str
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class DirectInviteResult:
    target_id: int
    service: MediaService
    name: str
    url: str
    issued: bool
    delivered: bool


class InviteWorkflowService(BaseService):
    def __init__(
        self,
        config: BotConfig,
        repository: PendingInviteRepository,
        admin_settings: AdminSettingsService,
        issuer: InviteIssuer,
        notifier: InviteNotifier,
        scheduler: Scheduler,
        one_shots: OneShotRegistry,
        logger: Logger,
        catalogue: Optional[ServiceCatalogue] = None,
    ) -> None:
        super().__init__(config, logger)
        self.repository = repository
        self.admin_settings = admin_settings
        self.issuer = issuer
        self.notifier = notifier
        self.scheduler = scheduler
        self.one_shots = one_shots
        self.catalogue = catalogue
        self.expiry_window = timedelta(seconds=config.invite_expiry_seconds)

        self._pending: Dict[int, InviteRequest] = {}
        self._timers: Dict[int, ScheduledHandle] = {}
        self._requesting: Set[int] = set()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.scheduler.now(), tz=timezone.utc)

    def get_pending(self, requester_id: int) -> Optional[InviteRequest]:
        return self._pending.get(requester_id)

    def is_pending(self, requester_id: int) -> bool:
        return requester_id in self._pending

    async def list_pending(self, now: Optional[datetime] = None) -> List[InviteRequest]:
        """Pending requests oldest first, after sweeping expired ones."""
        await self.cleanup_expired(now)
        return sorted(self._pending.values(), key=lambda r: r.created_at)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def restore(self) -> int:
        """
        Reload the pending set after a restart and re-arm timers.

        Returns:
            Number of requests still pending
        """
        loaded = await self.repository.load()
        now = self._now()
        dropped = 0

        for requester_id, request in loaded.items():
            if request.is_expired(now, self.expiry_window):
                dropped += 1
                continue
            self._pending[requester_id] = request
            remaining = (request.expires_at(self.expiry_window) - now).total_seconds()
            self._arm(requester_id, remaining)

        if dropped:
            await self._persist()

        self.log.info(
            "✓ Pending invites restored",
            extra={"pending": len(self._pending), "expired_dropped": dropped},
        )
        return len(self._pending)

    def shutdown(self) -> None:
        for requester_id in list(self._timers):
            self._disarm(requester_id)

    # -------------------------------------------------------------------------
    # Request
    # -------------------------------------------------------------------------

    async def request_invite(
        self,
        requester_id: int,
        name: str,
        service: "MediaService | str",
        justification: str = "",
        requester_display: str = "",
    ) -> InviteRequest:
        """
        Create a pending request and post the admin prompt.

        Raises:
            UnknownServiceError: Service is not Plex or Jellyfin
            ValidationError: Name empty or too long
            AdminChannelNotConfiguredError: No admin channel set
            InviteAlreadyPendingError: Requester already has a pending request
            InvitePromptDeliveryError: Prompt could not be posted (nothing stored)
        """
        service = MediaService.parse(service)
        name = self.validate_text(name, "name", MAX_NAME_LENGTH)
        justification = (justification or "").strip()[:MAX_JUSTIFICATION_LENGTH]

        channel_id = self.admin_settings.admin_channel_id
        if not channel_id:
            raise AdminChannelNotConfiguredError()

        await self.cleanup_expired()
        existing = self._pending.get(requester_id)
        if existing is not None or requester_id in self._requesting:
            pending_service = existing.service.value if existing else service.value
            raise InviteAlreadyPendingError(requester_id, pending_service)

        request = InviteRequest(
            requester_id=requester_id,
            requester_name=name,
            service=service,
            justification=justification,
            created_at=self._now(),
            requester_display=requester_display,
        )

        self._requesting.add(requester_id)
        try:
            try:
                prompt = await self.notifier.post_prompt(channel_id, request)
            except TransportError as e:
                self.log_error("post_invite_prompt", e, requester_id=requester_id, channel_id=channel_id)
                raise InvitePromptDeliveryError(channel_id, e.message) from e

            request = request.with_prompt(prompt)
            self._pending[requester_id] = request
            try:
                await self._persist()
            except StorageError:
                del self._pending[requester_id]
                await self._withdraw_prompt(request)
                raise
        finally:
            self._requesting.discard(requester_id)

        self._arm(requester_id, self.expiry_window.total_seconds())
        self.log_operation(
            "request_invite",
            requester_id=requester_id,
            service=service.value,
            channel_id=channel_id,
        )
        return request

    async def _withdraw_prompt(self, request: InviteRequest) -> None:
        """Take the buttons off a prompt whose request was rolled back."""
        try:
            await self.notifier.resolve_prompt(InviteDecision(request, InviteState.CANCELLED, None))
        except TransportError as e:
            self.log.warning(
                "Could not withdraw invite prompt",
                extra={"requester_id": request.requester_id, "error": str(e), "error_type": type(e).__name__},
            )

    # -------------------------------------------------------------------------
    # Admin actions
    # -------------------------------------------------------------------------

    async def _claim(self, requester_id: int) -> InviteRequest:
        if not self.one_shots.claim(requester_id):
            raise InviteAlreadyProcessedError(requester_id)

        request = self._pending.get(requester_id)
        if request is None or request.is_expired(self._now(), self.expiry_window):
            self.one_shots.disarm(requester_id)
            if request is not None:
                self._remove(requester_id)
                await self._persist()
            raise InviteAlreadyProcessedError(requester_id)
        return request

    async def approve(self, requester_id: int, admin_id: int) -> InviteDecision:
        """
        Issue the invite and close the request.

        Raises:
            InviteAlreadyProcessedError: Request gone, expired, or being handled
            InviteIssuanceError: Wizarr failed; request remains pending
        """
        request = await self._claim(requester_id)

        try:
            invite = await self.issuer.create_invite(request.requester_name, request.service)
        except HomelabInfrastructureException as e:
            self.one_shots.release(requester_id)
            self.log_error("approve_invite", e, requester_id=requester_id, admin_id=admin_id)
            raise InviteIssuanceError(requester_id, e.message) from e
        except Exception:
            self.one_shots.release(requester_id)
            raise

        await self._finish(requester_id)
        decision = InviteDecision(request, InviteState.APPROVED, admin_id, invite=invite)
        self.log_operation(
            "approve_invite",
            requester_id=requester_id,
            admin_id=admin_id,
            service=request.service.value,
            invite_code=invite.code,
        )
        return await self._deliver(decision)

    async def deny(self, requester_id: int, admin_id: int) -> InviteDecision:
        """
        Close the request without issuing anything.

        Raises:
            InviteAlreadyProcessedError: Request gone, expired, or being handled
        """
        request = await self._claim(requester_id)
        await self._finish(requester_id)

        decision = InviteDecision(request, InviteState.DENIED, admin_id)
        self.log_operation(
            "deny_invite",
            requester_id=requester_id,
            admin_id=admin_id,
            service=request.service.value,
        )
        return await self._deliver(decision)

    async def _finish(self, requester_id: int) -> None:
        self._remove(requester_id)
        self.one_shots.consume(requester_id)
        try:
            await self._persist()
        except StorageError as e:
            # The decision already happened upstream; keep going and surface it in logs
            self.log_error("persist_pending_invites", e, requester_id=requester_id)

    async def _deliver(self, decision: InviteDecision) -> InviteDecision:
        try:
            await self.notifier.resolve_prompt(decision)
        except TransportError as e:
            self.log.warning(
                "Could not update invite prompt",
                extra={"requester_id": decision.request.requester_id, "error": str(e), "error_type": type(e).__name__},
            )

        try:
            await self.notifier.notify_requester(decision)
        except TransportError as e:
            self.log.warning(
                "Could not notify invite requester",
                extra={"requester_id": decision.request.requester_id, "error": str(e), "error_type": type(e).__name__},
            )
            return InviteDecision(
                decision.request, decision.state, decision.admin_id, decision.invite, delivered=False
            )
        return decision

    # -------------------------------------------------------------------------
    # Expiry
    # -------------------------------------------------------------------------

    async def expire(self, requester_id: int) -> bool:
        """
        Timer path: drop a request silently.

        Returns:
            True if the request was removed
        """
        self._timers.pop(requester_id, None)
        if self.one_shots.is_claimed(requester_id):
            self.log.info(
                "Invite expiry skipped: admin action in flight",
                extra={"requester_id": requester_id},
            )
            return False
        if requester_id not in self._pending:
            return False

        self._remove(requester_id)
        self.one_shots.disarm(requester_id)
        await self._persist()
        self.log_operation("expire_invite", requester_id=requester_id)
        return True

    async def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """Passive sweep. Returns the number of requests removed."""
        now = now or self._now()
        expired = [
            rid
            for rid, request in self._pending.items()
            if request.is_expired(now, self.expiry_window) and not self.one_shots.is_claimed(rid)
        ]
        for rid in expired:
            self._remove(rid)
            self.one_shots.disarm(rid)

        if expired:
            await self._persist()
            self.log_operation("cleanup_expired_invites", removed=len(expired))
        return len(expired)

    # -------------------------------------------------------------------------
    # Direct issuance
    # -------------------------------------------------------------------------

    async def give_invite(
        self,
        admin_id: int,
        target_id: int,
        name: str,
        service: "MediaService | str",
        admin_name: str = "",
    ) -> DirectInviteResult:
        """
        Issue an invite straight to a member, bypassing approval.

        Falls back to the service's public link when Wizarr is unavailable.

        Raises:
            InviteIssuanceError: Wizarr failed and no public link is configured
        """
        service = MediaService.parse(service)
        name = self.validate_text(name, "name", MAX_NAME_LENGTH)

        issued = True
        try:
            url = (await self.issuer.create_invite(name, service)).url
        except HomelabInfrastructureException as e:
            issued = False
            fallback = self.catalogue.get(service.value) if self.catalogue else None
            if fallback is None or not fallback.has_link:
                raise InviteIssuanceError(target_id, e.message) from e
            self.log.warning(
                "Wizarr unavailable, sending public service link",
                extra={"target_id": target_id, "service": service.value, "error": e.message},
            )
            url = fallback.url

        delivered = True
        try:
            await self.notifier.send_direct_invite(target_id, service, url, name, admin_name)
        except TransportError as e:
            delivered = False
            self.log.warning(
                "Could not DM direct invite",
                extra={"target_id": target_id, "error": str(e), "error_type": type(e).__name__},
            )

        self.log_operation(
            "give_invite",
            admin_id=admin_id,
            target_id=target_id,
            service=service.value,
            issued=issued,
            delivered=delivered,
        )
        return DirectInviteResult(target_id, service, name, url, issued, delivered)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _arm(self, requester_id: int, delay: float) -> None:
        self._disarm(requester_id)
        delay = max(delay, 0.0)
        self.one_shots.arm(requester_id, delay)

        async def _on_expiry() -> None:
            await self.expire(requester_id)

        self._timers[requester_id] = self.scheduler.call_later(
            delay, _on_expiry, name=f"invite-expiry-{requester_id}"
        )

    def _disarm(self, requester_id: int) -> None:
        timer = self._timers.pop(requester_id, None)
        if timer is not None:
            timer.cancel()

    def _remove(self, requester_id: int) -> None:
        self._pending.pop(requester_id, None)
        self._disarm(requester_id)

    async def _persist(self) -> None:
        await self.repository.save(self._pending.values())
