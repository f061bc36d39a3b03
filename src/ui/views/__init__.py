"""
UI Views package.

Exports the view classes used by cogs and the bot.
"""

from src.ui.views.base import BaseView, error_embed, send_error
from src.ui.views.invite import InviteActionButton, InviteApprovalView, ServiceSelectView
from src.ui.views.links import QuickLinksView
from src.ui.views.toggle import ServiceToggleView, links_panel_embed

__all__ = [
    # Base
    "BaseView",
    "error_embed",
    "send_error",

    # Invite
    "InviteActionButton",
    "InviteApprovalView",
    "ServiceSelectView",

    # Dashboard
    "QuickLinksView",
    "ServiceToggleView",
    "links_panel_embed",
]
