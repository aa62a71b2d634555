"""
discord_transport.py
====================

Py-cord implementation of :class:`MessagingTransport` and the conversion from
``discord.Message`` to :class:`InboundMessage`.

Conversation ids are channel ids. Discord deletes messages for everyone, so the
``for_everyone`` flag of :meth:`DiscordTransport.delete_message` is accepted
for interface parity only.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from io import BytesIO
from typing import AsyncIterator, Optional, Sequence

import discord

from chatwarden.datatypes.message_datatypes import InboundMessage, MediaPayload
from chatwarden.util.logger import get_logger

logger = get_logger("discord_transport")

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".heif", ".heic")
MESSAGE_LIMIT = 2000


def attachment_media_type(attachment: discord.Attachment) -> str:
    """Coarse media tag for an attachment: ``image``, ``video``, ``audio`` or ``file``."""
    content_type = (attachment.content_type or "").lower()
    for kind in ("image", "video", "audio"):
        if content_type.startswith(f"{kind}/"):
            return kind

    filename = (attachment.filename or "").lower()
    if filename.endswith(IMAGE_EXTENSIONS):
        return "image"
    return "file"


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split ``text`` into chunks of at most ``limit`` characters, breaking on whitespace.

    A run without whitespace longer than ``limit`` is cut hard.
    """
    chunks: list[str] = []
    while len(text) > limit:
        cut = max(text.rfind(" ", 0, limit + 1), text.rfind("\n", 0, limit + 1))
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip(" \n")
    if text or not chunks:
        chunks.append(text)
    return chunks


def _primary_attachment(message: discord.Message) -> Optional[discord.Attachment]:
    """First image attachment, or the first attachment of any kind."""
    for attachment in message.attachments:
        if attachment_media_type(attachment) == "image":
            return attachment
    return message.attachments[0] if message.attachments else None


def to_inbound_message(message: discord.Message, bot_user: Optional[discord.abc.User]) -> InboundMessage:
    """Convert a py-cord message into the transport-neutral form."""
    attachment = _primary_attachment(message)

    if attachment is not None:
        media_type: str | None = attachment_media_type(attachment)
    elif message.stickers:
        media_type = "sticker"
    else:
        media_type = None

    async def fetch_media() -> Optional[MediaPayload]:
        if attachment is None:
            return None
        data = await attachment.read()
        return MediaPayload(data=data, mimetype=attachment.content_type or "", filename=attachment.filename)

    participants: tuple[str, ...] = ()
    if message.guild is not None:
        participants = tuple(str(member.id) for member in message.guild.members if not member.bot)

    return InboundMessage(
        message_id=str(message.id),
        sender_id=str(message.author.id),
        conversation_id=str(message.channel.id),
        body=message.content or "",
        has_media=media_type is not None,
        media_type=media_type,
        is_view_once=bool(getattr(message.flags, "ephemeral", False)),
        from_self=bot_user is not None and message.author.id == bot_user.id,
        is_group=message.guild is not None,
        participants=participants,
        fetch_media=fetch_media,
        raw=message,
    )


class DiscordTransport:
    """Sends, deletes and signals typing through a py-cord client."""

    def __init__(self, bot: discord.Client) -> None:
        self.bot = bot

    async def _channel(self, conversation_id: str) -> discord.abc.Messageable:
        channel_id = int(conversation_id)
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel

    async def send_text(
        self,
        conversation_id: str,
        text: str,
        reply_to: InboundMessage | None = None,
        mentions: Sequence[str] = (),
    ) -> None:
        channel = await self._channel(conversation_id)
        if mentions:
            text = text + " ".join(f"<@{user_id}>" for user_id in mentions)

        reference = reply_to.raw if reply_to is not None and isinstance(reply_to.raw, discord.Message) else None
        for chunk in split_message(text):
            await channel.send(
                chunk,
                reference=reference,
                allowed_mentions=discord.AllowedMentions(users=True, everyone=False, roles=False),
            )
            reference = None

    async def send_sticker(self, conversation_id: str, payload: MediaPayload, name: str, author: str) -> None:
        channel = await self._channel(conversation_id)
        await channel.send(file=discord.File(BytesIO(payload.data), filename=payload.filename or "sticker.webp"))
        logger.debug("Sent sticker '%s' by %s to %s", name, author, conversation_id)

    async def delete_message(self, message: InboundMessage, for_everyone: bool = True) -> bool:
        raw = message.raw
        if raw is None:
            return False
        try:
            await raw.delete()
            return True
        except discord.NotFound:
            return False
        except discord.Forbidden:
            logger.warning("No permission to delete message %s", message.message_id)
        except discord.HTTPException as exc:
            logger.error("Error deleting message %s: %s", message.message_id, exc)
        return False

    @asynccontextmanager
    async def typing(self, conversation_id: str) -> AsyncIterator[None]:
        channel = await self._channel(conversation_id)
        async with channel.typing():
            yield
