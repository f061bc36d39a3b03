# src/ui/embeds.py
"""
Embed factory for Discord embeds across the HomeLab bot.

Features:
- Consistent branding and colors
- Automatic Discord limits enforcement
- Builders for the invite flow and settings status panels

Usage:
    >>> from src.ui.embeds import EmbedFactory
    >>> embed = EmbedFactory.success("Channel Set", "Dashboard will post in #status")
    >>> embed = EmbedFactory.invite_prompt(request, expires_at)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import discord

from src.modules.invite.models import InviteDecision, InviteRequest, InviteState, MediaService
from src.ui.emojis import Emojis
from src.ui.themes import BrandingTheme, EmbedColor, UIConstants


def discord_timestamp(moment: datetime, style: str = "R") -> str:
    return f"<t:{int(moment.timestamp())}:{style}>"


class EmbedFactory:
    """
    Factory for standardized Discord embeds.

    All embeds include a timestamp and respect Discord limits.
    """

    @staticmethod
    def _base_embed(
        title: str,
        description: str,
        color: int,
        footer: Optional[str] = None,
    ) -> discord.Embed:
        """
        Create base embed with automatic limit enforcement.

        Args:
            title: Embed title (max 256 chars)
            description: Embed description (max 4096 chars)
            color: Discord color integer
            footer: Optional footer text (max 2048 chars)
        """
        title = UIConstants.truncate_text(title, UIConstants.EMBED_TITLE_LIMIT)
        description = UIConstants.truncate_text(description, UIConstants.EMBED_DESCRIPTION_LIMIT)

        embed = discord.Embed(
            title=title,
            description=description,
            color=color,
            timestamp=datetime.now(timezone.utc),
        )

        if footer:
            footer = UIConstants.truncate_text(footer, UIConstants.EMBED_FOOTER_LIMIT)
            embed.set_footer(text=footer)

        return embed

    # =========================================================================
    # CORE TYPES
    # =========================================================================

    @staticmethod
    def primary(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        """Default embed for neutral/system messages."""
        return EmbedFactory._base_embed(
            title, description, EmbedColor.DEFAULT, footer or BrandingTheme.DEFAULT_FOOTER
        )

    @staticmethod
    def success(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        return EmbedFactory._base_embed(
            title, description, EmbedColor.SUCCESS, footer or BrandingTheme.DEFAULT_FOOTER
        )

    @staticmethod
    def error(title: str, description: str, help_text: Optional[str] = None) -> discord.Embed:
        """
        Error embeds with optional help text.

        Args:
            title: Error title
            description: Error description
            help_text: Optional helpful suggestion for user
        """
        desc = description
        if help_text:
            desc += f"\n\n{Emojis.TIP} **Help:** {help_text}"
        return EmbedFactory._base_embed(title, desc, EmbedColor.ERROR)

    @staticmethod
    def warning(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        """For recoverable issues or alerts."""
        return EmbedFactory._base_embed(
            title, description, EmbedColor.WARNING, footer or BrandingTheme.DEFAULT_FOOTER
        )

    @staticmethod
    def info(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        return EmbedFactory._base_embed(
            title, description, EmbedColor.INFO, footer or BrandingTheme.DEFAULT_FOOTER
        )

    # =========================================================================
    # SETTINGS PANELS
    # =========================================================================

    @staticmethod
    def channel_status(title: str, channel_id: Optional[int], extra_fields: Iterable[Dict[str, Any]] = ()) -> discord.Embed:
        configured = channel_id is not None
        embed = EmbedFactory._base_embed(
            title,
            f"{Emojis.SUCCESS} Posting in <#{channel_id}>" if configured else f"{Emojis.WARNING} No channel configured",
            EmbedColor.SUCCESS if configured else EmbedColor.WARNING,
            BrandingTheme.get_footer("admin"),
        )
        EmbedFactory.add_fields_safe(embed, list(extra_fields))
        return embed

    # =========================================================================
    # INVITE FLOW
    # =========================================================================

    @staticmethod
    def invite_prompt(request: InviteRequest, expires_at: datetime) -> discord.Embed:
        """Admin-facing approval prompt."""
        service = request.service.label
        embed = EmbedFactory._base_embed(
            f"{Emojis.BELL} New Invite Request",
            f"**{request.requester_name}** is requesting an invite for **{service}**",
            EmbedColor.PENDING,
            BrandingTheme.get_footer("invite"),
        )
        fields: List[Dict[str, Any]] = [
            {
                "name": f"{Emojis.PERSON} Requester",
                "value": f"**Name:** {request.requester_name}\n**Discord:** <@{request.requester_id}>",
                "inline": True,
            },
            {"name": f"{Emojis.MEDIA} Service", "value": f"{request.service.emoji} **{service}**", "inline": True},
            {
                "name": f"{Emojis.CLOCK} Requested",
                "value": f"{discord_timestamp(request.created_at)}\nExpires {discord_timestamp(expires_at)}",
                "inline": True,
            },
        ]
        if request.justification:
            fields.append({"name": f"{Emojis.SPEECH} Message", "value": request.justification, "inline": False})
        EmbedFactory.add_fields_safe(embed, fields)
        return embed

    @staticmethod
    def invite_resolved(decision: InviteDecision) -> discord.Embed:
        """Terminal prompt display after approve, deny or a withdrawn request."""
        request = decision.request
        service = request.service.label
        now = datetime.now(timezone.utc)

        if decision.state is InviteState.APPROVED:
            embed = EmbedFactory._base_embed(
                f"{Emojis.SUCCESS} Invite Approved & Created",
                f"**{request.requester_name}** has been approved for **{service}**",
                EmbedColor.SUCCESS,
                BrandingTheme.get_footer("approved"),
            )
            fields = []
            if decision.invite is not None:
                fields.append(
                    {
                        "name": f"{Emojis.TICKET} Invite Details",
                        "value": f"**URL:** [Click here]({decision.invite.url})",
                        "inline": False,
                    }
                )
            fields.append({"name": f"{Emojis.PERSON} Approved by", "value": f"<@{decision.admin_id}>", "inline": True})
            fields.append({"name": f"{Emojis.CLOCK} Approved at", "value": discord_timestamp(now), "inline": True})
        elif decision.state is InviteState.CANCELLED:
            embed = EmbedFactory._base_embed(
                f"{Emojis.WARNING} Request Withdrawn",
                f"The request from **{request.requester_name}** for **{service}** could not be saved. "
                "The member was asked to try again.",
                EmbedColor.WARNING,
                BrandingTheme.get_footer("cancelled"),
            )
            fields = []
        else:
            embed = EmbedFactory._base_embed(
                f"{Emojis.CANCEL} Invite Denied",
                f"**{request.requester_name}** was denied access to **{service}**",
                EmbedColor.ERROR,
                BrandingTheme.get_footer("denied"),
            )
            fields = [
                {"name": f"{Emojis.PERSON} Denied by", "value": f"<@{decision.admin_id}>", "inline": True},
                {"name": f"{Emojis.CLOCK} Denied at", "value": discord_timestamp(now), "inline": True},
            ]
        EmbedFactory.add_fields_safe(embed, fields)
        return embed

    @staticmethod
    def invite_outcome_for_requester(decision: InviteDecision) -> discord.Embed:
        service = decision.request.service.label
        if decision.state is InviteState.APPROVED and decision.invite is not None:
            embed = EmbedFactory._base_embed(
                f"{Emojis.PARTY} Invite Approved!",
                f"Your request for **{service}** access has been approved!",
                EmbedColor.SUCCESS,
                BrandingTheme.get_footer("welcome"),
            )
            EmbedFactory.add_fields_safe(
                embed,
                [
                    {
                        "name": f"{Emojis.TICKET} Your Invite",
                        "value": f"**URL:** [Click here to accept]({decision.invite.url})",
                        "inline": False,
                    },
                    {
                        "name": f"{Emojis.MAIL} Instructions",
                        "value": "1. Click the link above\n2. Enter your details\n3. Start enjoying your media!",
                        "inline": False,
                    },
                ],
            )
            return embed

        embed = EmbedFactory._base_embed(
            f"{Emojis.CANCEL} Invite Request Denied",
            f"Your request for **{service}** access has been denied.",
            EmbedColor.ERROR,
            BrandingTheme.get_footer("denied"),
        )
        embed.add_field(
            name=f"{Emojis.SPEECH} Need Help?",
            value="If you believe this was an error, please contact an administrator.",
            inline=False,
        )
        return embed

    @staticmethod
    def direct_invite(service: MediaService, url: str, name: str, admin_name: str) -> discord.Embed:
        who = f"**{admin_name}** has" if admin_name else "An admin has"
        embed = EmbedFactory._base_embed(
            f"{Emojis.PARTY} You've Been Invited!",
            f"{who} sent you an invite for **{service.label}**!",
            EmbedColor.SUCCESS,
            BrandingTheme.get_footer("welcome"),
        )
        EmbedFactory.add_fields_safe(
            embed,
            [
                {"name": "Name", "value": name, "inline": True},
                {"name": "Service", "value": service.label, "inline": True},
                {"name": "Service Access", "value": f"[Click here to access {service.label}]({url})", "inline": False},
                {
                    "name": "Instructions",
                    "value": "1. Click the link above\n2. Create your account or log in\n3. Contact an admin if you need help",
                    "inline": False,
                },
            ],
        )
        return embed

    @staticmethod
    def pending_invites(requests: List[InviteRequest], expiry_for: Any) -> discord.Embed:
        if not requests:
            return EmbedFactory.info(f"{Emojis.TICKET} Pending Invites", "No pending invite requests.")

        embed = EmbedFactory._base_embed(
            f"{Emojis.TICKET} Pending Invites",
            f"{len(requests)} request{'s' if len(requests) != 1 else ''} awaiting review",
            EmbedColor.PENDING,
            BrandingTheme.get_footer("invite"),
        )
        EmbedFactory.add_fields_safe(
            embed,
            [
                {
                    "name": f"{r.service.emoji} {r.requester_name} • {r.service.label}",
                    "value": (
                        f"<@{r.requester_id}> • requested {discord_timestamp(r.created_at)}"
                        f" • expires {discord_timestamp(expiry_for(r))}"
                    ),
                    "inline": False,
                }
                for r in requests
            ],
        )
        return embed

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def add_fields_safe(
        embed: discord.Embed,
        fields: List[Dict[str, Any]],
        max_fields: int = UIConstants.EMBED_MAX_FIELDS,
    ) -> int:
        """
        Safely add fields to embed with limit checking.

        Args:
            embed: Discord embed to add fields to
            fields: List of dicts with 'name', 'value', 'inline' keys
            max_fields: Maximum fields to add (Discord limit is 25)

        Returns:
            Number of fields actually added
        """
        added = 0
        for field in fields:
            if len(embed.fields) >= max_fields:
                break

            name = UIConstants.truncate_text(field.get("name", "Field"), UIConstants.EMBED_TITLE_LIMIT)
            value = UIConstants.truncate_text(field.get("value") or "​", UIConstants.EMBED_FIELD_LIMIT)
            embed.add_field(name=name, value=value, inline=field.get("inline", False))
            added += 1

        return added
