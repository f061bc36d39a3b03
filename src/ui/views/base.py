"""
Base view classes with common patterns.

Provides reusable pieces for Discord views with:
- User validation
- Timeout handling
- Message tracking
- Error replies through `ErrorResponseService`

Usage:
    >>> class MyView(BaseView):
    ...     def __init__(self, user_id: int):
    ...         super().__init__(user_id, timeout=180)
    ...
    ...     @discord.ui.button(label="Click Me")
    ...     async def my_button(self, interaction, button):
    ...         if not await self.check_user(interaction):
    ...             return
    ...         await interaction.response.send_message("Clicked!")
"""

from typing import Optional

import discord
from discord.ui import View

from src.core.exceptions import HomelabInfrastructureException
from src.core.logging.logger import get_logger
from src.core.services.error_response_service import ErrorResponseService
from src.modules.shared.exceptions import HomelabDomainException
from src.ui.embeds import EmbedFactory

_errors = ErrorResponseService()


def error_embed(error: BaseException) -> discord.Embed:
    response = _errors.format_error(error)
    return EmbedFactory.error(response["title"], response["description"], response.get("help_text"))


async def send_error(interaction: discord.Interaction, error: BaseException) -> None:
    """Ephemeral error reply that works before or after the response was used."""
    embed = error_embed(error)
    try:
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)
    except discord.HTTPException as e:
        get_logger(__name__).warning(
            "Failed to send interaction error reply",
            extra={"error": str(e), "error_type": type(e).__name__},
        )


class BaseView(View):
    """
    Base view class with common functionality.

    All view interactions should check user authorization via check_user().
    """

    def __init__(
        self,
        user_id: int,
        timeout: Optional[float] = 180,
        logger_name: Optional[str] = None,
    ):
        """
        Args:
            user_id: Discord user ID who can interact with this view
            timeout: Timeout in seconds (default 3 minutes)
            logger_name: Optional logger name for logging interactions
        """
        super().__init__(timeout=timeout)
        self.user_id = user_id
        self.message: Optional[discord.Message] = None
        self.logger = get_logger(logger_name or __name__)

    async def check_user(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.user_id:
            await interaction.response.send_message(
                "This interaction is not for you!",
                ephemeral=True,
            )
            return False
        return True

    def disable_all(self) -> None:
        for child in self.children:
            if isinstance(child, (discord.ui.Button, discord.ui.Select)):
                child.disabled = True

    async def on_timeout(self) -> None:
        """Disable every component on the tracked message."""
        if self.message:
            try:
                self.disable_all()
                await self.message.edit(view=self)
                self.logger.debug("View timed out", extra={"user_id": self.user_id})
            except discord.HTTPException as e:
                self.logger.warning(
                    "Failed to edit message on timeout",
                    extra={"error": str(e), "error_type": type(e).__name__},
                )

    async def on_error(
        self,
        interaction: discord.Interaction,
        error: Exception,
        item: discord.ui.Item,
    ) -> None:
        if not isinstance(error, (HomelabDomainException, HomelabInfrastructureException)):
            self.logger.error(
                "Error in view",
                extra={"user_id": self.user_id, "error": str(error), "error_type": type(error).__name__},
                exc_info=error,
            )
        await send_error(interaction, error)

    def set_message(self, message: discord.Message) -> None:
        self.message = message
