"""
Branding, colors, and Discord limits for embeds.

Centralized footers, the color palette, and the hard limits Discord enforces
on embeds and components.

Usage:
    >>> from src.ui.themes import BrandingTheme, EmbedColor, UIConstants
    >>> footer = BrandingTheme.get_footer("invite")
"""

from typing import Optional


class EmbedColor:
    """Embed colors by intent."""

    DEFAULT = 0x2C2D31
    SUCCESS = 0x00FF00
    ERROR = 0xFF0000
    WARNING = 0xFFA500
    INFO = 0x3498DB
    DASHBOARD = 0x0099FF
    PENDING = 0xFFA500


class UIConstants:
    """Constants for Discord UI components."""

    PROGRESS_BAR_LENGTH = 10
    PROGRESS_FILLED = "█"
    PROGRESS_EMPTY = "░"

    # Discord embed limits
    EMBED_DESCRIPTION_LIMIT = 4096
    EMBED_FIELD_LIMIT = 1024
    EMBED_TITLE_LIMIT = 256
    EMBED_FOOTER_LIMIT = 2048
    EMBED_MAX_FIELDS = 25

    # Button/Select limits
    MAX_BUTTONS_PER_ROW = 5
    MAX_ROWS = 5
    MAX_SELECT_OPTIONS = 25

    @staticmethod
    def truncate_text(text: str, limit: int) -> str:
        text = str(text)
        if len(text) <= limit:
            return text
        return text[: limit - 3] + "..."


class BrandingTheme:
    """HomeLab bot branding."""

    BOT_NAME = "HomeLab Discord Bot"
    DEFAULT_FOOTER = BOT_NAME

    CONTEXTS = {
        "dashboard": "Dashboard",
        "live": "Live Dashboard",
        "invite": "Invite Approval",
        "approved": "Invite Approved",
        "denied": "Invite Denied",
        "cancelled": "Invite Withdrawn",
        "welcome": "Welcome!",
        "admin": "Admin",
        "links": "Quick Links",
    }

    @classmethod
    def get_footer(cls, context: Optional[str] = None, custom: Optional[str] = None) -> str:
        """
        Footer for a context.

        Examples:
            >>> BrandingTheme.get_footer()
            'HomeLab Discord Bot'
            >>> BrandingTheme.get_footer("invite")
            'HomeLab Discord Bot • Invite Approval'
        """
        if custom:
            return custom
        if context and context in cls.CONTEXTS:
            return f"{cls.BOT_NAME} • {cls.CONTEXTS[context]}"
        return cls.DEFAULT_FOOTER
