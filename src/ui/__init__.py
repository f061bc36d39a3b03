"""
UI Subsystem.

Centralized Discord presentation for the HomeLab bot: emojis, colors,
branding, embeds, the dashboard renderer, and views.

Organization:
    - emojis: Emoji constants (Emojis class)
    - themes: Colors, branding footers, Discord limits
    - formatters: Progress bars, sizes, speeds, durations
    - embeds: Embed factory with invite and settings builders
    - dashboard: Snapshot -> DashboardPayload renderer
    - views: Invite buttons, service pickers, quick links

Usage Examples:
    >>> from src.ui import EmbedFactory
    >>> embed = EmbedFactory.success("Channel Set", "Dashboard will post here")
    >>>
    >>> from src.ui import render_dashboard
    >>> payload = render_dashboard(snapshot, selection, catalogue)
"""

# ============================================================================
# CORE IMPORTS
# ============================================================================

from src.ui.emojis import Emojis
from src.ui.themes import BrandingTheme, EmbedColor, UIConstants
from src.ui.formatters import StatusFormatters
from src.ui.embeds import EmbedFactory
from src.ui.dashboard import DashboardPayload, render_dashboard

# ============================================================================
# VIEWS
# ============================================================================

from src.ui.views import (
    BaseView,
    InviteActionButton,
    InviteApprovalView,
    QuickLinksView,
    ServiceSelectView,
    ServiceToggleView,
)

# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "Emojis",
    "BrandingTheme",
    "EmbedColor",
    "UIConstants",
    "StatusFormatters",
    "EmbedFactory",
    "DashboardPayload",
    "render_dashboard",
    "BaseView",
    "InviteActionButton",
    "InviteApprovalView",
    "QuickLinksView",
    "ServiceSelectView",
    "ServiceToggleView",
]
