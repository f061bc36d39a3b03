"""Quick-link button grid attached to the dashboard."""

from typing import Sequence

import discord

from src.core.config.catalogue import CatalogueEntry
from src.ui.themes import UIConstants


class QuickLinksView(discord.ui.View):
    """
    Link buttons only; Discord opens the URL client-side, so there is no
    callback and no timeout.
    """

    def __init__(self, entries: Sequence[CatalogueEntry]):
        super().__init__(timeout=None)
        limit = UIConstants.MAX_BUTTONS_PER_ROW * UIConstants.MAX_ROWS
        for position, entry in enumerate(list(entries)[:limit]):
            self.add_item(
                discord.ui.Button(
                    style=discord.ButtonStyle.link,
                    label=entry.label,
                    url=entry.url,
                    emoji=entry.emoji or None,
                    row=position // UIConstants.MAX_BUTTONS_PER_ROW,
                )
            )
