"""
Centralized emoji definitions for the HomeLab bot.

Single source of truth for every emoji the embeds, buttons, and presence
line use. All are standard Unicode emojis.

Usage:
    from src.ui.emojis import Emojis

    title = f"{Emojis.DOCKER} Containers"
"""


class Emojis:
    """Centralized emoji constants for HomeLab UI."""

    # ═══════════════════════════════════════════════════════════════
    # STATUS
    # ═══════════════════════════════════════════════════════════════
    ONLINE = "✅"
    OFFLINE = "❌"
    ERROR = "❌"
    DISABLED = "⚪"
    UNKNOWN = "❓"
    WARNING = "⚠️"

    # ═══════════════════════════════════════════════════════════════
    # INTEGRATIONS
    # ═══════════════════════════════════════════════════════════════
    HOME = "🏠"
    SERVER = "🖥️"
    DOCKER = "🐳"
    MEDIA = "🎬"
    ARR = "📡"
    DOWNLOADS = "⬇️"
    CLUSTER = "🗄️"
    VIEWERS = "👥"
    LINK = "🔗"

    # ═══════════════════════════════════════════════════════════════
    # INVITES
    # ═══════════════════════════════════════════════════════════════
    BELL = "🔔"
    TICKET = "🎫"
    PARTY = "🎉"
    PERSON = "👤"
    CLOCK = "⏰"
    MAIL = "📧"
    SPEECH = "💬"

    # ═══════════════════════════════════════════════════════════════
    # UI ACTIONS
    # ═══════════════════════════════════════════════════════════════
    SUCCESS = "✅"
    CANCEL = "❌"
    TIP = "💡"
    SETTINGS = "⚙️"
    REFRESH = "🔄"
    STOP = "⏹️"
    LIVE = "🔴"

    @classmethod
    def for_status(cls, status: str) -> str:
        return {
            "online": cls.ONLINE,
            "offline": cls.OFFLINE,
            "error": cls.ERROR,
            "disabled": cls.DISABLED,
        }.get(status, cls.UNKNOWN)
