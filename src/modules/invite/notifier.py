"""
Discord side effects of the invite workflow.

Every method raises `TransportError` on failure so the workflow can decide
what is fatal (posting the prompt) and what is best effort (everything after
the decision).
"""

from __future__ import annotations

from datetime import timedelta

import discord

from src.core.exceptions import TransportError
from src.modules.dashboard.transport import resolve_channel
from src.modules.invite.models import InviteDecision, InviteRequest, MediaService, PromptRef
from src.ui.embeds import EmbedFactory
from src.ui.views.invite import InviteApprovalView


def _transport_error(action: str, error: discord.HTTPException, **details: object) -> TransportError:
    return TransportError(
        f"Could not {action}: {error}",
        details={**details, "status": error.status},
        is_retryable=not isinstance(error, (discord.Forbidden, discord.NotFound)),
    )


class DiscordInviteNotifier:
    def __init__(self, client: discord.Client, expiry_window: timedelta) -> None:
        self.client = client
        self.expiry_window = expiry_window

    async def post_prompt(self, channel_id: int, request: InviteRequest) -> PromptRef:
        channel = await resolve_channel(self.client, channel_id)
        try:
            message = await channel.send(
                embed=EmbedFactory.invite_prompt(request, request.expires_at(self.expiry_window)),
                view=InviteApprovalView(request.requester_id),
            )
        except discord.HTTPException as e:
            raise _transport_error("post invite prompt", e, channel_id=channel_id) from e
        return PromptRef(channel_id, message.id)

    async def resolve_prompt(self, decision: InviteDecision) -> None:
        """Replace the prompt with the terminal display and drop the buttons."""
        prompt = decision.request.prompt
        if prompt is None:
            return

        channel = await resolve_channel(self.client, prompt.channel_id)
        partial = getattr(channel, "get_partial_message", None)
        try:
            message = partial(prompt.message_id) if partial else await channel.fetch_message(prompt.message_id)
            await message.edit(embed=EmbedFactory.invite_resolved(decision), view=None)
        except discord.HTTPException as e:
            raise _transport_error(
                "update invite prompt", e, channel_id=prompt.channel_id, message_id=prompt.message_id
            ) from e

    async def notify_requester(self, decision: InviteDecision) -> None:
        await self._dm(decision.request.requester_id, EmbedFactory.invite_outcome_for_requester(decision))

    async def send_direct_invite(
        self, target_id: int, service: MediaService, url: str, name: str, admin_name: str
    ) -> None:
        await self._dm(target_id, EmbedFactory.direct_invite(service, url, name, admin_name))

    async def _dm(self, user_id: int, embed: discord.Embed) -> None:
        try:
            user = self.client.get_user(user_id) or await self.client.fetch_user(user_id)
            await user.send(embed=embed)
        except discord.HTTPException as e:
            raise _transport_error("send direct message", e, user_id=user_id) from e
