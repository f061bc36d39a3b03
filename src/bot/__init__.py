"""
Bot infrastructure and Discord integration layer.

Purpose
-------
Expose the bot-facing types used by the rest of the system:

- Main bot implementation (HomelabBot)
- Cog base class and loader (BaseCog, CogLoader)

Example
-------
    from src.bot import HomelabBot

    bot = HomelabBot(config, container)
    await bot.start(config.discord_token)
"""

from __future__ import annotations

from src.bot.base_cog import BaseCog
from src.bot.homelab_bot import HomelabBot
from src.bot.loader import CogLoader, load_all_cogs

__all__ = [
    "BaseCog",
    "CogLoader",
    "HomelabBot",
    "load_all_cogs",
]
