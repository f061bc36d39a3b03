"""
Invite Cog - media server access requests
=========================================

Commands:
- invite <name> [message]: pick Plex or Jellyfin and send a request to the admins
- invitemanage list: pending requests with their expiry (admin)
- invitemanage cleanup: drop expired requests now (admin)
- invitegive <user> <service> <name>: issue an invite directly (admin)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from src.bot.base_cog import BaseCog
from src.core.exceptions import HomelabInfrastructureException
from src.modules.invite.models import MediaService
from src.modules.shared.exceptions import HomelabDomainException
from src.ui.embeds import EmbedFactory, discord_timestamp
from src.ui.emojis import Emojis
from src.ui.views.base import error_embed
from src.ui.views.invite import ServiceSelectView

if TYPE_CHECKING:
    from src.core.services.container import ServiceContainer


class InviteCog(BaseCog):
    """
    Member-facing invite requests plus the admin tools around them.

    Approve/deny buttons on the admin prompt are handled by
    `InviteActionButton`, not by this cog.
    """

    def __init__(self, bot: commands.Bot, container: ServiceContainer):
        super().__init__(bot, "InviteCog", container)

    # ------------- REQUEST -------------

    @commands.hybrid_command(name="invite", description="Request access to Plex or Jellyfin")
    @app_commands.describe(name="Name for your account", message="Optional note for the admins")
    @app_commands.guild_only()
    @commands.guild_only()
    async def invite(self, ctx: commands.Context, name: str, *, message: str = ""):
        embed = EmbedFactory.primary(
            f"{Emojis.TICKET} Request Media Access",
            f"Choose the service you want access to, **{name}**.",
            footer="This selection expires in 5 minutes",
        )

        async def on_select(interaction: discord.Interaction, service: MediaService) -> None:
            await self.submit_request(interaction, ctx.author, name, message, service)

        view = ServiceSelectView(ctx.author.id, on_select)
        sent = await self.send_embed(ctx, embed, view=view)
        if sent is not None:
            view.set_message(sent)

    async def submit_request(
        self,
        interaction: discord.Interaction,
        author: discord.abc.User,
        name: str,
        message: str,
        service: MediaService,
    ) -> None:
        """Send the request once a service is picked; the select message always gets an outcome."""
        invites = self.container.invites
        await interaction.response.defer()
        try:
            request = await invites.request_invite(
                author.id,
                name,
                service,
                justification=message,
                requester_display=author.display_name,
            )
        except (HomelabDomainException, HomelabInfrastructureException) as e:
            self.logger.info(
                "Invite request rejected",
                extra={"requester_id": author.id, "error": str(e), "error_type": type(e).__name__},
            )
            await interaction.edit_original_response(embed=error_embed(e), view=None)
            return
        except Exception as e:
            self.logger.error(
                "Invite request failed",
                extra={"requester_id": author.id, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            await interaction.edit_original_response(embed=error_embed(e), view=None)
            return

        await interaction.edit_original_response(
            embed=EmbedFactory.success(
                f"{Emojis.SUCCESS} Request Submitted",
                f"Your request for **{service.label}** access was sent to the admins. "
                f"You'll get a DM once it's reviewed.\n\n"
                f"Expires {discord_timestamp(request.expires_at(invites.expiry_window))}",
            ),
            view=None,
        )
        self.log_command_use("invite", author.id, service=service.value)

    # ------------- ADMIN TOOLS -------------

    @commands.hybrid_group(name="invitemanage", invoke_without_command=True, description="Manage pending invites")
    @commands.check(BaseCog.require_admin)
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def invitemanage(self, ctx: commands.Context):
        await self.invitemanage_list(ctx)

    @invitemanage.command(name="list", description="List pending invite requests")
    @commands.check(BaseCog.require_admin)
    async def invitemanage_list(self, ctx: commands.Context):
        invites = self.container.invites
        pending = await invites.list_pending()
        await self.send_embed(
            ctx,
            EmbedFactory.pending_invites(pending, lambda r: r.expires_at(invites.expiry_window)),
        )

    @invitemanage.command(name="cleanup", description="Remove expired invite requests")
    @commands.check(BaseCog.require_admin)
    async def invitemanage_cleanup(self, ctx: commands.Context):
        async with self.command_context(ctx):
            removed = await self.container.invites.cleanup_expired()
            if removed:
                await self.send_success(
                    ctx, "Cleanup Complete", f"Removed {removed} expired request{'s' if removed != 1 else ''}."
                )
            else:
                await self.send_info(ctx, "Cleanup Complete", "No expired requests found.")
            self.log_command_use("invitemanage cleanup", ctx.author.id, removed=removed)

    @commands.hybrid_command(name="invitegive", description="Send a media invite directly to a member")
    @app_commands.describe(user="Member to invite", service="plex or jellyfin", name="Name for the account")
    @app_commands.choices(
        service=[app_commands.Choice(name=s.label, value=s.value) for s in MediaService]
    )
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    @commands.check(BaseCog.require_admin)
    async def invitegive(self, ctx: commands.Context, user: discord.Member, service: str, *, name: str):
        start_time = time.perf_counter()
        async with self.command_context(ctx, target_id=user.id):
            await self.defer(ctx)
            result = await self.container.invites.give_invite(
                ctx.author.id, user.id, name, service, admin_name=ctx.author.display_name
            )

            lines = [f"{result.service.emoji} **{result.service.label}** invite for {user.mention} ({result.name})."]
            if not result.issued:
                lines.append(f"{Emojis.WARNING} Wizarr was unavailable, the public link was used instead.")
            if result.delivered:
                lines.append(f"{Emojis.MAIL} Sent by DM.")
            else:
                lines.append(f"{Emojis.WARNING} Could not DM {user.mention}. Share this link manually:")
            lines.append(result.url)

            title = "Invite Sent" if result.delivered else "Invite Created, DM Failed"
            embed = (
                EmbedFactory.success(title, "\n".join(lines))
                if result.delivered
                else EmbedFactory.warning(title, "\n".join(lines))
            )
            await self.send_embed(ctx, embed)
            self.log_command_use(
                "invitegive",
                ctx.author.id,
                target_id=user.id,
                delivered=result.delivered,
                latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )


async def setup(bot: commands.Bot):
    await bot.add_cog(InviteCog(bot, bot.container))
