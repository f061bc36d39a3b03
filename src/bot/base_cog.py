"""
Base Discord Cog

Purpose
-------
Foundation for every command cog: standardized feedback embeds, exception
to embed conversion, and structured logging with Discord context.

Responsibilities
----------------
- Standardize user feedback (success/error/info embeds, ephemeral when the
  command was invoked as a slash command)
- Convert domain and infrastructure exceptions into error embeds through
  `ErrorResponseService` (the bot's `on_command_error` routes here)
- Attach user/guild/command context to every log line of a command
- Accept the `ServiceContainer` via constructor injection

Non-Responsibilities
--------------------
- Business logic (delegated to services)
- Cog discovery (CogLoader)

Usage Example
-------------
>>> class AdminCog(BaseCog):
...     def __init__(self, bot, container):
...         super().__init__(bot, "AdminCog", container)
...
...     @commands.hybrid_command()
...     async def ping(self, ctx):
...         await self.send_success(ctx, "Pong", "Still here.")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import discord
from discord.ext import commands

from src.core.exceptions import ErrorSeverity
from src.core.logging.logger import LogContext, get_logger
from src.core.services.error_response_service import ErrorResponseService
from src.ui.embeds import EmbedFactory

if TYPE_CHECKING:
    from src.core.services.container import ServiceContainer


class BaseCog(commands.Cog):
    """
    Base class for all command cogs.

    Attributes
    ----------
    bot : commands.Bot
        Discord bot instance
    cog_name : str
        Name of the cog for logging
    container : ServiceContainer
        Services the cog's commands call into
    error_response_service : ErrorResponseService
        Formats exceptions for display
    """

    def __init__(
        self,
        bot: commands.Bot,
        cog_name: str,
        container: ServiceContainer,
        error_response_service: Optional[ErrorResponseService] = None,
    ) -> None:
        self.bot = bot
        self.cog_name = cog_name
        self.container = container
        self.logger = get_logger(cog_name)
        self.error_response_service = error_response_service or container.errors

    # ========================================================================
    # USER FEEDBACK UTILITIES
    # ========================================================================

    async def defer(self, ctx: commands.Context, ephemeral: bool = True) -> None:
        """Acknowledge a slow command (typing indicator for prefix invocations)."""
        try:
            await ctx.defer(ephemeral=ephemeral)
        except discord.HTTPException as exc:
            self.logger.warning(
                "Failed to defer command",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )

    async def send_error(
        self,
        ctx: commands.Context,
        title: str,
        description: str,
        help_text: Optional[str] = None,
    ) -> None:
        await self.send_embed(ctx, EmbedFactory.error(title, description, help_text))

    async def send_success(
        self,
        ctx: commands.Context,
        title: str,
        description: str,
        footer: Optional[str] = None,
    ) -> None:
        await self.send_embed(ctx, EmbedFactory.success(title, description, footer))

    async def send_info(
        self,
        ctx: commands.Context,
        title: str,
        description: str,
        footer: Optional[str] = None,
    ) -> None:
        await self.send_embed(ctx, EmbedFactory.info(title, description, footer))

    async def send_embed(
        self,
        ctx: commands.Context,
        embed: discord.Embed,
        view: Optional[discord.ui.View] = None,
        ephemeral: bool = True,
    ) -> Optional[discord.Message]:
        """
        Send an embed to the invoking context.

        Slash invocations reply ephemerally; prefix invocations reply to the
        triggering message.
        """
        kwargs: dict[str, Any] = {"embed": embed}
        if view is not None:
            kwargs["view"] = view
        try:
            if ctx.interaction is not None:
                return await ctx.send(ephemeral=ephemeral, **kwargs)
            return await ctx.reply(mention_author=False, **kwargs)
        except discord.HTTPException as exc:
            self.logger.error(
                "Failed to send embed",
                extra={"cog_name": self.cog_name, "error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            return None

    # ========================================================================
    # STANDARDIZED ERROR HANDLING (COMMAND CONTEXT)
    # ========================================================================

    async def handle_standard_error(self, ctx: commands.Context, error: BaseException) -> None:
        response = self.error_response_service.format_error(error)
        if response["severity"] in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self.log_cog_error(
                str(ctx.command) if ctx.command else "unknown",
                error,
                user_id=ctx.author.id,
                guild_id=ctx.guild.id if ctx.guild else None,
            )
        else:
            self.logger.info(
                "Command rejected",
                extra={
                    "command": str(ctx.command),
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )

        if response["severity"] in (ErrorSeverity.DEBUG, ErrorSeverity.INFO):
            embed = EmbedFactory.warning(response["title"], response["description"])
        else:
            embed = EmbedFactory.error(response["title"], response["description"], response.get("help_text"))
        await self.send_embed(ctx, embed)

    # ========================================================================
    # PERMISSIONS
    # ========================================================================

    @staticmethod
    def require_admin(ctx: commands.Context) -> bool:
        """Check used by admin cogs; covers prefix and slash invocations alike."""
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        permissions = getattr(ctx.author, "guild_permissions", None)
        if permissions is None or not permissions.administrator:
            raise commands.MissingPermissions(["administrator"])
        return True

    # ========================================================================
    # LOGGING UTILITIES
    # ========================================================================

    def command_context(self, ctx: commands.Context, **fields: Any) -> LogContext:
        """
        Usage:
            async with self.command_context(ctx):
                ...
        """
        return LogContext(
            user_id=ctx.author.id,
            guild_id=ctx.guild.id if ctx.guild else None,
            command=str(ctx.command) if ctx.command else None,
            component=self.cog_name,
            **fields,
        )

    def log_command_use(
        self,
        command_name: str,
        user_id: int,
        guild_id: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.logger.info(
            f"Command executed: {command_name}",
            extra={
                "command": command_name,
                "user_id": user_id,
                "guild_id": guild_id,
                "cog_name": self.cog_name,
                **kwargs,
            },
        )

    def log_cog_error(
        self,
        operation: str,
        error: BaseException,
        user_id: Optional[int] = None,
        guild_id: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.logger.error(
            f"{self.cog_name}.{operation} failed: {error}",
            exc_info=error,
            extra={
                "operation": operation,
                "user_id": user_id,
                "guild_id": guild_id,
                "error": str(error),
                "error_type": type(error).__name__,
                **kwargs,
            },
        )
