"""
Message transport for dashboard boards.

`DashboardTransport` is what the publisher needs from the chat platform. The
Discord implementation maps `discord.NotFound` to `MessageNotFoundError` so
the publisher can tell a deleted message from a transient failure.
"""

from __future__ import annotations

from typing import Any, Protocol

import discord

from src.core.exceptions import MessageNotFoundError, TransportError
from src.core.logging.logger import get_logger

logger = get_logger(__name__)


class DashboardTransport(Protocol):
    async def create_message(self, channel_id: int, payload: Any) -> int: ...

    async def edit_message(self, channel_id: int, message_id: int, payload: Any) -> None: ...


async def resolve_channel(client: discord.Client, channel_id: int) -> discord.abc.Messageable:
    """
    Cached channel lookup with an API fallback.

    Raises:
        MessageNotFoundError: Channel deleted or invisible to the bot
        TransportError: Any other API failure
    """
    channel = client.get_channel(channel_id)
    if channel is None:
        try:
            channel = await client.fetch_channel(channel_id)
        except (discord.NotFound, discord.Forbidden) as e:
            raise MessageNotFoundError(channel_id) from e
        except discord.HTTPException as e:
            raise TransportError(
                f"Could not fetch channel {channel_id}: {e}",
                details={"channel_id": channel_id, "status": e.status},
            ) from e

    if not isinstance(channel, discord.abc.Messageable):
        raise TransportError(
            f"Channel {channel_id} cannot receive messages",
            details={"channel_id": channel_id},
            is_retryable=False,
        )
    return channel


class DiscordDashboardTransport:
    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def create_message(self, channel_id: int, payload: Any) -> int:
        channel = await resolve_channel(self.client, channel_id)
        try:
            message = await channel.send(embeds=payload.embeds, view=payload.view)
        except discord.NotFound as e:
            raise MessageNotFoundError(channel_id) from e
        except discord.HTTPException as e:
            raise TransportError(
                f"Could not post dashboard in {channel_id}: {e}",
                details={"channel_id": channel_id, "status": e.status},
            ) from e
        return message.id

    async def edit_message(self, channel_id: int, message_id: int, payload: Any) -> None:
        channel = await resolve_channel(self.client, channel_id)
        partial = getattr(channel, "get_partial_message", None)
        try:
            message = partial(message_id) if partial else await channel.fetch_message(message_id)
            await message.edit(embeds=payload.embeds, view=payload.view)
        except discord.NotFound as e:
            raise MessageNotFoundError(channel_id, message_id) from e
        except discord.HTTPException as e:
            raise TransportError(
                f"Could not edit dashboard {message_id}: {e}",
                details={"channel_id": channel_id, "message_id": message_id, "status": e.status},
            ) from e
