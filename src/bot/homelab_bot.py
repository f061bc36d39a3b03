"""
HomeLab Discord Bot - Main Bot Class

Purpose
-------
Discord integration for the HomeLab bot with dependency injection.

Responsibilities
----------------
- Discord events, prefix + slash (hybrid) commands, presence
- Startup: build services, re-attach persistent invite buttons, load cogs,
  sync the slash command tree
- Start the dashboard refresh and presence timers once connected
- Global error handling for commands
- Graceful shutdown of timers, storage and HTTP clients

Non-Responsibilities
--------------------
- Business rules (services)
- Component construction (ServiceContainer)
- Logging setup (src.main)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List

import discord
from discord.ext import commands

from src.bot.base_cog import BaseCog
from src.bot.loader import load_all_cogs
from src.core.exceptions import HomelabInfrastructureException, TransportError
from src.core.logging.logger import LogContext, get_logger
from src.modules.shared.exceptions import HomelabDomainException
from src.ui.embeds import EmbedFactory
from src.ui.views.invite import InviteActionButton

if TYPE_CHECKING:
    from src.core.config.config import BotConfig
    from src.core.services.container import ServiceContainer

logger = get_logger(__name__)


@dataclass
class BotMetrics:
    commands_executed: int = 0
    commands_failed: int = 0
    errors_by_type: Dict[str, int] = field(default_factory=dict)


class HomelabBot(commands.Bot):
    """
    Dependencies (Injected):
    - config: Resolved bot configuration
    - container: Service container (the bot attaches itself to it)
    """

    def __init__(self, config: BotConfig, container: ServiceContainer) -> None:
        self.config = config
        self.container = container
        container.attach(self)

        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True

        super().__init__(
            command_prefix=self._get_prefix,
            intents=intents,
            help_command=None,
            case_insensitive=True,
            strip_after_prefix=True,
            description="HomeLab dashboard and media invite bot",
        )

        self.metrics = BotMetrics()
        self.bot_ready = False
        self._timers_started = False

    # --------------------------------------------------------------- #
    # Prefix Handling
    # --------------------------------------------------------------- #

    def _get_prefix(self, bot: commands.Bot, message: discord.Message) -> List[str]:
        return commands.when_mentioned_or(self.config.command_prefix)(bot, message)

    # --------------------------------------------------------------- #
    # Startup and Initialization
    # --------------------------------------------------------------- #

    async def setup_hook(self) -> None:
        """
        Runs once before connecting to the gateway.

        - Build services and load persisted state (restores pending invites)
        - Re-attach approve/deny handlers for prompts posted before a restart
        - Load cogs and sync slash commands
        """
        startup_start = time.perf_counter()
        logger.info("=" * 60)
        logger.info("HOMELAB BOT SETUP")
        logger.info("=" * 60)

        try:
            await self.container.initialize()

            self.add_dynamic_items(InviteActionButton)
            logger.info("✓ Invite buttons registered")

            cog_stats = await load_all_cogs(self)
            logger.info("✓ Cogs loaded", extra={"loaded": cog_stats["loaded"], "failed": cog_stats["failed"]})

            try:
                synced = await self.tree.sync()
                logger.info("✓ Slash commands synced", extra={"count": len(synced)})
            except discord.HTTPException as exc:
                logger.warning(
                    "Slash command sync failed, prefix commands still work",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )

            logger.info(
                "✓ Bot setup complete",
                extra={"duration_ms": round((time.perf_counter() - startup_start) * 1000, 2)},
            )
        except Exception as exc:
            logger.critical(
                "Bot setup failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise

    # --------------------------------------------------------------- #
    # Discord Events
    # --------------------------------------------------------------- #

    async def on_ready(self) -> None:
        """Fires on every (re)connect; timers start only the first time."""
        self.bot_ready = True
        logger.info("=" * 60)
        logger.info("Bot is ONLINE as %s", self.user)
        logger.info("Guilds: %d", len(self.guilds))
        logger.info("=" * 60)

        if self._timers_started:
            return
        self._timers_started = True
        self.container.start_dashboard_refresh()
        self.container.presence.start(self._push_presence)

    async def _push_presence(self, text: str) -> None:
        try:
            await self.change_presence(
                activity=discord.Activity(type=discord.ActivityType.watching, name=text),
                status=discord.Status.online,
            )
        except (discord.HTTPException, discord.ConnectionClosed) as exc:
            raise TransportError(f"Could not update presence: {exc}") from exc

    # --------------------------------------------------------------- #
    # Error Handling
    # --------------------------------------------------------------- #

    async def on_command_error(self, ctx: commands.Context, error: Exception) -> None:
        """
        Global error handler for prefix and hybrid commands.

        Service exceptions go through the cog's standard handler; framework
        errors get a short embed; anything else is logged as unexpected.
        """
        async with LogContext(
            user_id=ctx.author.id,
            guild_id=ctx.guild.id if ctx.guild else None,
            command=str(ctx.command) if ctx.command else "unknown",
        ):
            if isinstance(error, commands.CommandNotFound):
                return

            self.metrics.commands_failed += 1
            original = getattr(error, "original", error)
            # Hybrid commands wrap twice
            original = getattr(original, "original", original)
            error_type = type(original).__name__
            self.metrics.errors_by_type[error_type] = self.metrics.errors_by_type.get(error_type, 0) + 1

            if isinstance(original, (HomelabDomainException, HomelabInfrastructureException)):
                cog = ctx.cog
                if isinstance(cog, BaseCog):
                    await cog.handle_standard_error(ctx, original)
                    return
                response = self.container.errors.format_error(original)
                await self._reply(
                    ctx, EmbedFactory.error(response["title"], response["description"], response.get("help_text"))
                )
                return

            if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
                await self._reply(
                    ctx,
                    EmbedFactory.error(
                        "Invalid Arguments",
                        str(error),
                        help_text=f"Usage: `{self.config.command_prefix}{ctx.command} {ctx.command.signature}`"
                        if ctx.command
                        else None,
                    ),
                )
                return

            if isinstance(error, commands.NoPrivateMessage):
                await self._reply(ctx, EmbedFactory.error("Server Only", "This command only works inside a server."))
                return

            if isinstance(error, commands.CheckFailure):
                await self._reply(
                    ctx, EmbedFactory.error("Permission Denied", "You need Administrator permission to use this command.")
                )
                return

            logger.error(
                "Unhandled command error",
                extra={"command": str(ctx.command), "error": str(original), "error_type": error_type},
                exc_info=original,
            )
            await self._reply(
                ctx,
                EmbedFactory.error(
                    "Unexpected Error",
                    "Something went wrong while processing your command.",
                    help_text="The issue has been logged.",
                ),
            )

    async def _reply(self, ctx: commands.Context, embed: discord.Embed) -> None:
        try:
            if ctx.interaction is not None:
                await ctx.send(embed=embed, ephemeral=True)
            else:
                await ctx.reply(embed=embed, mention_author=False)
        except discord.HTTPException as exc:
            logger.warning(
                "Failed to send command error",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )

    async def on_command_completion(self, ctx: commands.Context) -> None:
        self.metrics.commands_executed += 1

    # --------------------------------------------------------------- #
    # Graceful Shutdown
    # --------------------------------------------------------------- #

    async def close(self) -> None:
        logger.info("=" * 60)
        logger.info("HOMELAB BOT SHUTDOWN")
        logger.info("=" * 60)

        total = self.metrics.commands_executed + self.metrics.commands_failed
        if total:
            logger.info(
                "Final command statistics",
                extra={
                    "commands_executed": self.metrics.commands_executed,
                    "commands_failed": self.metrics.commands_failed,
                    "errors_by_type": self.metrics.errors_by_type,
                },
            )

        await self.container.shutdown()
        await super().close()
        logger.info("✓ Bot shutdown complete")
