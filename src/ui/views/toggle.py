"""Admin panel for choosing which quick links the dashboard shows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

import discord

from src.core.config.catalogue import ServiceCatalogue
from src.modules.dashboard.selection import EnabledServiceSelection
from src.ui.embeds import EmbedFactory
from src.ui.emojis import Emojis
from src.ui.themes import BrandingTheme, UIConstants
from src.ui.views.base import BaseView

if TYPE_CHECKING:
    from src.modules.dashboard.settings import DashboardSettingsService

# First row carries the bulk actions
SERVICE_SLOTS = UIConstants.MAX_BUTTONS_PER_ROW * (UIConstants.MAX_ROWS - 1)


def links_panel_embed(selection: EnabledServiceSelection, catalogue: ServiceCatalogue) -> discord.Embed:
    if selection.is_all:
        enabled = "All Services"
    else:
        entries = [catalogue.get(i) for i in selection.enabled_ids(catalogue)]
        enabled = "\n".join(f"{e.emoji} {e.label}" for e in entries if e is not None) or "No Services"

    embed = EmbedFactory.info(
        f"{Emojis.SETTINGS} Dashboard Service Links",
        "Select which services appear as quick links on the dashboard.",
        footer=BrandingTheme.get_footer("links"),
    )
    embed.add_field(name="📋 Enabled Services", value=UIConstants.truncate_text(enabled, UIConstants.EMBED_FIELD_LIMIT))
    return embed


class ServiceToggleView(BaseView):
    """
    Bulk actions plus one toggle button per catalogue service.

    Every click writes through `DashboardSettingsService` and then re-renders
    the panel from the persisted selection.
    """

    def __init__(
        self,
        user_id: int,
        settings: DashboardSettingsService,
        catalogue: ServiceCatalogue,
        timeout: float = 300,
    ):
        super().__init__(user_id, timeout, logger_name=__name__)
        self.settings = settings
        self.catalogue = catalogue
        self._build()

    def _build(self) -> None:
        self.clear_items()
        selection = self.settings.selection

        for label, emoji, style, action in (
            ("Enable All", Emojis.SUCCESS, discord.ButtonStyle.success, self.settings.enable_all),
            ("Disable All", Emojis.CANCEL, discord.ButtonStyle.danger, self.settings.disable_all),
            ("Reset to Default", Emojis.REFRESH, discord.ButtonStyle.secondary, self.settings.reset),
        ):
            button = discord.ui.Button(label=label, emoji=emoji, style=style, row=0)
            button.callback = self._wrap(action)
            self.add_item(button)

        for position, entry in enumerate(list(self.catalogue)[:SERVICE_SLOTS]):
            enabled = selection.is_enabled(entry.id)
            button = discord.ui.Button(
                label=entry.label,
                emoji=Emojis.SUCCESS if enabled else Emojis.CANCEL,
                style=discord.ButtonStyle.success if enabled else discord.ButtonStyle.secondary,
                custom_id=f"dashboard:service:{entry.id}",
                row=1 + position // UIConstants.MAX_BUTTONS_PER_ROW,
            )
            button.callback = self._wrap(lambda service_id=entry.id: self.settings.toggle_service(service_id))
            self.add_item(button)

    def _wrap(self, action: Callable[[], Awaitable[object]]) -> Callable[[discord.Interaction], Awaitable[None]]:
        async def _callback(interaction: discord.Interaction) -> None:
            if not await self.check_user(interaction):
                return
            await action()
            self._build()
            await interaction.response.edit_message(
                embed=links_panel_embed(self.settings.selection, self.catalogue),
                view=self,
            )

        return _callback
