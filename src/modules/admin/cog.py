"""
Admin Cog - invite approval channel
===================================

Commands:
- admin set <channel>: where invite approval prompts are posted
- admin remove: stop accepting invite requests
- admin status: current channel
- admin test: post a test message to the configured channel
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from src.bot.base_cog import BaseCog
from src.modules.shared.exceptions import AdminChannelNotConfiguredError
from src.ui.embeds import EmbedFactory
from src.ui.emojis import Emojis

if TYPE_CHECKING:
    from src.core.services.container import ServiceContainer


class AdminCog(BaseCog):
    """Administrator commands for the invite approval channel."""

    def __init__(self, bot: commands.Bot, container: ServiceContainer):
        super().__init__(bot, "AdminCog", container)

    async def cog_check(self, ctx: commands.Context) -> bool:
        return self.require_admin(ctx)

    @commands.hybrid_group(name="admin", invoke_without_command=True, description="Manage the admin channel")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def admin(self, ctx: commands.Context):
        await self.admin_status(ctx)

    @admin.command(name="set", description="Set the channel for invite approval prompts")
    @app_commands.describe(channel="Text channel invite requests are posted in")
    async def admin_set(self, ctx: commands.Context, channel: discord.TextChannel):
        async with self.command_context(ctx, channel_id=channel.id):
            await self.container.admin_settings.set_channel(channel.id)
            await self.send_success(
                ctx,
                "Admin Channel Set",
                f"Invite requests will be posted in {channel.mention}.",
            )
            self.log_command_use("admin set", ctx.author.id, channel_id=channel.id)

    @admin.command(name="remove", description="Clear the admin channel")
    async def admin_remove(self, ctx: commands.Context):
        async with self.command_context(ctx):
            previous = self.container.admin_settings.admin_channel_id
            await self.container.admin_settings.clear_channel()
            if previous is None:
                await self.send_info(ctx, "No Admin Channel", "No admin channel was configured.")
                return
            await self.send_success(
                ctx,
                "Admin Channel Removed",
                f"Invite requests will no longer be posted in <#{previous}>. "
                "New requests are refused until a channel is set.",
            )
            self.log_command_use("admin remove", ctx.author.id, channel_id=previous)

    @admin.command(name="status", description="Show the admin channel")
    async def admin_status(self, ctx: commands.Context):
        status = self.container.admin_settings.status()
        pending = await self.container.invites.list_pending()
        fields = [{"name": f"{Emojis.TICKET} Pending Invites", "value": str(len(pending)), "inline": True}]
        if status["last_updated"]:
            fields.append({"name": "Last Updated", "value": status["last_updated"], "inline": True})
        await self.send_embed(
            ctx,
            EmbedFactory.channel_status(f"{Emojis.SETTINGS} Admin Channel", status["channel_id"], fields),
        )

    @admin.command(name="test", description="Send a test message to the admin channel")
    async def admin_test(self, ctx: commands.Context):
        async with self.command_context(ctx):
            channel_id = self.container.admin_settings.admin_channel_id
            if channel_id is None:
                raise AdminChannelNotConfiguredError()

            channel = self.bot.get_channel(channel_id)
            try:
                if channel is None:
                    channel = await self.bot.fetch_channel(channel_id)
                await channel.send(
                    embed=EmbedFactory.info(
                        f"{Emojis.BELL} Admin Channel Test",
                        f"Invite approval prompts will appear here. Requested by {ctx.author.mention}.",
                    )
                )
            except discord.HTTPException as e:
                self.log_cog_error("admin test", e, user_id=ctx.author.id, channel_id=channel_id)
                await self.send_error(
                    ctx,
                    "Test Failed",
                    f"Could not post in <#{channel_id}>.",
                    help_text="Check that the bot can view and send messages in that channel.",
                )
                return

            await self.send_success(ctx, "Test Sent", f"A test message was posted in <#{channel_id}>.")


async def setup(bot: commands.Bot):
    await bot.add_cog(AdminCog(bot, bot.container))
