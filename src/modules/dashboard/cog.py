"""
Dashboard Cog - channel and quick-link configuration
====================================================

Commands:
- dashboard set <channel>: move the auto-refreshing dashboard and post now
- dashboard remove: stop posting (the last message stays)
- dashboard status: channel, enabled links and the last integration states
- dashboard test: render the dashboard once in the current channel
- dashboard links: toggle which services appear as quick links
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from src.bot.base_cog import BaseCog
from src.ui.embeds import EmbedFactory
from src.ui.emojis import Emojis
from src.ui.views.toggle import ServiceToggleView, links_panel_embed

if TYPE_CHECKING:
    from src.core.services.container import ServiceContainer


class DashboardCog(BaseCog):
    """Administrator commands for the main dashboard publisher."""

    def __init__(self, bot: commands.Bot, container: ServiceContainer):
        super().__init__(bot, "DashboardCog", container)

    async def cog_check(self, ctx: commands.Context) -> bool:
        return self.require_admin(ctx)

    @commands.hybrid_group(name="dashboard", invoke_without_command=True, description="Manage the HomeLab dashboard")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def dashboard(self, ctx: commands.Context):
        """`;dashboard` on its own shows the status."""
        await self.dashboard_status(ctx)

    @dashboard.command(name="set", description="Set the channel for the auto-updating dashboard")
    @app_commands.describe(channel="Text channel the dashboard is posted in")
    async def dashboard_set(self, ctx: commands.Context, channel: discord.TextChannel):
        start_time = time.perf_counter()
        async with self.command_context(ctx, channel_id=channel.id):
            await self.defer(ctx)
            posted = await self.container.dashboard.reassign(channel.id)

            await self.send_success(
                ctx,
                "Dashboard Channel Set",
                f"The dashboard now lives in {channel.mention} and refreshes every "
                f"{self.container.config.dashboard_refresh_interval:g} seconds.",
                footer=f"Message {posted.message_id}",
            )
            self.log_command_use(
                "dashboard set",
                ctx.author.id,
                guild_id=ctx.guild.id if ctx.guild else None,
                channel_id=channel.id,
                latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )

    @dashboard.command(name="remove", description="Stop posting the dashboard")
    async def dashboard_remove(self, ctx: commands.Context):
        async with self.command_context(ctx):
            previous = self.container.dashboard_settings.channel_id
            await self.container.dashboard_settings.clear_channel()
            self.container.dashboard.forget()

            if previous is None:
                await self.send_info(ctx, "No Dashboard Channel", "No dashboard channel was configured.")
                return
            await self.send_success(
                ctx,
                "Dashboard Channel Removed",
                f"The dashboard will no longer update in <#{previous}>.",
            )
            self.log_command_use("dashboard remove", ctx.author.id, channel_id=previous)

    @dashboard.command(name="status", description="Show the dashboard configuration")
    async def dashboard_status(self, ctx: commands.Context):
        settings = self.container.dashboard_settings.status()
        publisher = self.container.dashboard
        snapshot = self.container.aggregator.last_snapshot

        enabled = (
            "All services"
            if settings["all_enabled"]
            else f"{settings['enabled_count']} of {settings['total_services']}"
        )
        fields = [
            {"name": f"{Emojis.LINK} Quick Links", "value": enabled, "inline": True},
            {"name": f"{Emojis.REFRESH} Refresh", "value": f"Every {self.container.config.dashboard_refresh_interval:g}s", "inline": True},
            {"name": "State", "value": publisher.state.value, "inline": True},
        ]
        if publisher.posted is not None:
            fields.append({"name": "Message", "value": str(publisher.posted.message_id), "inline": True})
        if snapshot is not None:
            states = "\n".join(f"`{name}`: {state}" for name, state in snapshot.summary().items())
            fields.append({"name": f"{Emojis.SERVER} Integrations", "value": states or "none", "inline": False})
        if settings["last_updated"]:
            fields.append({"name": "Last Updated", "value": settings["last_updated"], "inline": False})

        await self.send_embed(
            ctx,
            EmbedFactory.channel_status(f"{Emojis.SETTINGS} Dashboard Status", settings["channel_id"], fields),
        )

    @dashboard.command(name="test", description="Post a one-off dashboard preview here")
    async def dashboard_test(self, ctx: commands.Context):
        async with self.command_context(ctx):
            await self.defer(ctx, ephemeral=False)
            snapshot = await self.container.aggregator.aggregate()
            payload = self.container.dashboard.renderer(snapshot, self.container.dashboard_settings.selection)
            kwargs = {"embeds": payload.embeds}
            if payload.view is not None:
                kwargs["view"] = payload.view
            await ctx.send(**kwargs)
            self.log_command_use("dashboard test", ctx.author.id, failed=len(snapshot.failed()))

    @dashboard.command(name="links", description="Choose which services appear as quick links")
    async def dashboard_links(self, ctx: commands.Context):
        settings = self.container.dashboard_settings
        view = ServiceToggleView(ctx.author.id, settings, self.container.catalogue)
        message = await self.send_embed(ctx, links_panel_embed(settings.selection, self.container.catalogue), view=view)
        if message is not None:
            view.set_message(message)

    # ------------- LIVE UPDATES -------------

    @commands.hybrid_command(name="live", description="Start live dashboard updates in this channel")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def live(self, ctx: commands.Context):
        async with self.command_context(ctx, channel_id=ctx.channel.id):
            await self.defer(ctx)
            await self.container.live.start(ctx.channel.id)
            await self.send_success(
                ctx,
                f"{Emojis.LIVE} Live Updates Started",
                f"The dashboard in this channel refreshes every "
                f"{self.container.config.live_update_interval:g} seconds. Use `/stop` to stop.",
            )
            self.log_command_use("live", ctx.author.id, channel_id=ctx.channel.id)

    @commands.hybrid_command(name="stop", description="Stop live dashboard updates")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def stop(self, ctx: commands.Context):
        async with self.command_context(ctx):
            last = self.container.live.stop()
            where = f" The last board stays in <#{last.channel_id}>." if last is not None else ""
            await self.send_success(ctx, f"{Emojis.STOP} Live Updates Stopped", f"Live dashboard updates stopped.{where}")
            self.log_command_use("stop", ctx.author.id)


async def setup(bot: commands.Bot):
    await bot.add_cog(DashboardCog(bot, bot.container))
