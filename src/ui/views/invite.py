"""
Invite flow views.

- `InviteActionButton`: approve/deny button on the admin prompt. It is a
  `DynamicItem`, so the bot re-attaches handlers by `custom_id` after a
  restart without holding one view object per pending request.
- `InviteApprovalView`: the two buttons for one request.
- `ServiceSelectView`: requester picks Plex or Jellyfin.

The buttons do not enforce single use themselves; the workflow's one-shot
registry decides which click wins and everyone else gets "already processed".
"""

from __future__ import annotations

import re
from typing import Awaitable, Callable, Optional

import discord

from src.core.logging.logger import get_logger
from src.modules.invite.models import MediaService
from src.ui.embeds import EmbedFactory
from src.ui.emojis import Emojis
from src.ui.views.base import BaseView, send_error

logger = get_logger(__name__)

APPROVE = "approve"
DENY = "deny"


def invite_custom_id(action: str, requester_id: int) -> str:
    return f"invite:{action}:{requester_id}"


class InviteActionButton(
    discord.ui.DynamicItem[discord.ui.Button],
    template=r"invite:(?P<action>approve|deny):(?P<requester_id>[0-9]+)",
):
    def __init__(self, action: str, requester_id: int, disabled: bool = False) -> None:
        approve = action == APPROVE
        super().__init__(
            discord.ui.Button(
                label="Approve" if approve else "Deny",
                emoji=Emojis.SUCCESS if approve else Emojis.CANCEL,
                style=discord.ButtonStyle.success if approve else discord.ButtonStyle.danger,
                custom_id=invite_custom_id(action, requester_id),
                disabled=disabled,
            )
        )
        self.action = action
        self.requester_id = requester_id

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match: re.Match[str],
    ) -> "InviteActionButton":
        return cls(match["action"], int(match["requester_id"]))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        permissions = getattr(interaction.user, "guild_permissions", None)
        if permissions is None or not permissions.administrator:
            await interaction.response.send_message(
                f"{Emojis.CANCEL} Only administrators can review invite requests.",
                ephemeral=True,
            )
            return False
        return True

    async def callback(self, interaction: discord.Interaction) -> None:
        invites = interaction.client.container.invites  # type: ignore[attr-defined]
        await interaction.response.defer()

        try:
            if self.action == APPROVE:
                decision = await invites.approve(self.requester_id, interaction.user.id)
            else:
                decision = await invites.deny(self.requester_id, interaction.user.id)
        except Exception as e:
            logger.info(
                "Invite action rejected",
                extra={
                    "requester_id": self.requester_id,
                    "action": self.action,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            await send_error(interaction, e)
            return

        if not decision.delivered:
            await interaction.followup.send(
                f"{Emojis.WARNING} Done, but <@{self.requester_id}> could not be DM'd. "
                "Please reach out to them directly.",
                ephemeral=True,
            )


class InviteApprovalView(discord.ui.View):
    """Approve/deny buttons for one request; persistent (no timeout)."""

    def __init__(self, requester_id: int, disabled: bool = False):
        super().__init__(timeout=None)
        self.add_item(InviteActionButton(APPROVE, requester_id, disabled))
        self.add_item(InviteActionButton(DENY, requester_id, disabled))


ServiceChosen = Callable[[discord.Interaction, MediaService], Awaitable[None]]


class ServiceSelectView(BaseView):
    """Plex/Jellyfin picker shown to the requester."""

    def __init__(self, user_id: int, on_select: ServiceChosen, timeout: float = 300):
        super().__init__(user_id, timeout, logger_name=__name__)
        self.on_select = on_select
        self.chosen: Optional[MediaService] = None

        for service in (MediaService.PLEX, MediaService.JELLYFIN):
            button = discord.ui.Button(
                label=service.label,
                emoji=service.emoji,
                style=discord.ButtonStyle.primary,
                custom_id=f"invite:select:{service.value}",
            )
            button.callback = self._make_callback(service)
            self.add_item(button)

    def _make_callback(self, service: MediaService) -> Callable[[discord.Interaction], Awaitable[None]]:
        async def _callback(interaction: discord.Interaction) -> None:
            if not await self.check_user(interaction):
                return
            if self.chosen is not None:
                await interaction.response.send_message("A service was already selected.", ephemeral=True)
                return
            self.chosen = service
            self.disable_all()
            self.stop()
            await self.on_select(interaction, service)

        return _callback

    async def on_timeout(self) -> None:
        if self.message is None or self.chosen is not None:
            return
        try:
            await self.message.edit(
                embed=EmbedFactory.error(
                    f"{Emojis.CLOCK} Request Expired",
                    "No service was selected. Use `/invite` again to make a new request.",
                ),
                view=None,
            )
        except discord.HTTPException as e:
            self.logger.warning(
                "Failed to expire service picker",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
