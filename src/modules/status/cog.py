"""
Status Cog - read-only integration detail
=========================================

Commands (open to every member):
- server [stat]: hypervisor node gauges, other nodes and running guests
- docker: container list grouped by state
- media [type]: streams per media server and download client activity
- arr [service]: version, queue and upcoming releases per ARR app
- links: quick links for the services enabled on the dashboard

Every command reads through the per-integration caches, so repeated calls
inside the TTL cost no upstream requests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from discord import app_commands
from discord.ext import commands

from src.bot.base_cog import BaseCog
from src.modules.shared.exceptions import ValidationError
from src.modules.status.models import Integration, ServiceSnapshot
from src.ui.dashboard import quick_links
from src.ui.status_detail import (
    ARR_APPS,
    MEDIA_KINDS,
    SERVER_STATS,
    arr_detail_embed,
    docker_detail_embed,
    links_embed,
    media_detail_embed,
    server_detail_embed,
)
from src.ui.views.links import QuickLinksView

if TYPE_CHECKING:
    from src.core.services.container import ServiceContainer


def parse_choice(value: str, choices: Sequence[str], field: str) -> str:
    """Normalize a prefix-command option; slash commands already restrict it."""
    normalized = (value or "all").strip().lower()
    if normalized not in choices:
        raise ValidationError(field, f"must be one of: {', '.join(choices)}")
    return normalized


class StatusCog(BaseCog):
    def __init__(self, bot: commands.Bot, container: ServiceContainer):
        super().__init__(bot, "StatusCog", container)

    async def snapshot(self, integration: Integration) -> Optional[ServiceSnapshot]:
        """Cached snapshot for one integration; None when it is not part of the stack."""
        aggregator = self.container.aggregator
        if integration not in aggregator.integrations:
            return None
        return await aggregator.cache_for(integration).get()

    @commands.hybrid_command(name="server", description="Show hypervisor node statistics")
    @app_commands.describe(stat="Which gauges to show")
    @app_commands.choices(
        stat=[
            app_commands.Choice(name="All Stats", value="all"),
            app_commands.Choice(name="CPU Only", value="cpu"),
            app_commands.Choice(name="Memory Only", value="memory"),
            app_commands.Choice(name="Disk Only", value="disk"),
        ]
    )
    async def server(self, ctx: commands.Context, stat: str = "all"):
        async with self.command_context(ctx, stat=stat):
            stat = parse_choice(stat, SERVER_STATS, "stat")
            await self.defer(ctx, ephemeral=False)
            cluster = await self.snapshot(Integration.CLUSTER)
            await self.send_embed(
                ctx,
                server_detail_embed(cluster, self.container.config.presence_node, stat),
                ephemeral=False,
            )
            self.log_command_use("server", ctx.author.id, stat=stat)

    @commands.hybrid_command(name="docker", description="Show Docker container status")
    async def docker(self, ctx: commands.Context):
        async with self.command_context(ctx):
            await self.defer(ctx, ephemeral=False)
            docker = await self.snapshot(Integration.DOCKER)
            await self.send_embed(ctx, docker_detail_embed(docker), ephemeral=False)
            self.log_command_use("docker", ctx.author.id)

    @commands.hybrid_command(name="media", description="Show current streams and downloads")
    @app_commands.rename(kind="type")
    @app_commands.describe(kind="Which activity to show")
    @app_commands.choices(
        kind=[
            app_commands.Choice(name="All Activity", value="all"),
            app_commands.Choice(name="Jellyfin Streams", value="jellyfin"),
            app_commands.Choice(name="Plex Streams", value="plex"),
            app_commands.Choice(name="qBittorrent Downloads", value="qbittorrent"),
            app_commands.Choice(name="NZBGet Downloads", value="nzbget"),
        ]
    )
    async def media(self, ctx: commands.Context, kind: str = "all"):
        async with self.command_context(ctx, kind=kind):
            kind = parse_choice(kind, MEDIA_KINDS, "type")
            await self.defer(ctx, ephemeral=False)
            media = await self.snapshot(Integration.MEDIA) if kind in ("all", "jellyfin", "plex") else None
            downloads = await self.snapshot(Integration.DOWNLOADS) if kind in ("all", "qbittorrent", "nzbget") else None
            await self.send_embed(ctx, media_detail_embed(media, downloads, kind), ephemeral=False)
            self.log_command_use("media", ctx.author.id, kind=kind)

    @commands.hybrid_command(name="arr", description="Show ARR stack status and activity")
    @app_commands.describe(service="Specific ARR service to check")
    @app_commands.choices(
        service=[app_commands.Choice(name="All Services", value="all")]
        + [app_commands.Choice(name=app.title(), value=app) for app in ARR_APPS if app != "all"]
    )
    async def arr(self, ctx: commands.Context, service: str = "all"):
        async with self.command_context(ctx, service=service):
            service = parse_choice(service, ARR_APPS, "service")
            await self.defer(ctx, ephemeral=False)
            arr = await self.snapshot(Integration.ARR)
            await self.send_embed(ctx, arr_detail_embed(arr, service), ephemeral=False)
            self.log_command_use("arr", ctx.author.id, service=service)

    @commands.hybrid_command(name="links", description="Quick links to the hosted services")
    async def links(self, ctx: commands.Context):
        entries = quick_links(self.container.dashboard_settings.selection, self.container.catalogue)
        view = QuickLinksView(entries) if entries else None
        await self.send_embed(ctx, links_embed(entries), view=view, ephemeral=False)
        self.log_command_use("links", ctx.author.id, count=len(entries))


async def setup(bot: commands.Bot):
    await bot.add_cog(StatusCog(bot, bot.container))
