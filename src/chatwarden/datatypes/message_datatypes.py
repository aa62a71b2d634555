"""
Transport-neutral inbound message events.

The Discord cog converts each ``discord.Message`` into an :class:`InboundMessage`
so the handler, the moderation pipeline and the conversation manager never
depend on py-cord types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Tuple


@dataclass(frozen=True, slots=True)
class MediaPayload:
    """Raw media bytes downloaded on demand."""

    data: bytes
    mimetype: str = ""
    filename: str = ""


MediaFetcher = Callable[[], Awaitable[Optional[MediaPayload]]]


async def _no_media() -> Optional[MediaPayload]:
    return None


@dataclass(slots=True)
class InboundMessage:
    """One message received from the chat transport.

    Attributes:
        message_id: Transport id of the message.
        sender_id: Id of the author.
        conversation_id: Id of the chat the message belongs to.
        body: Text content.
        has_media: True when the message carries an attachment.
        media_type: Coarse media tag (``"image"``, ``"sticker"``, ``"video"``...).
        is_view_once: True for ephemeral, view-once media.
        from_self: True when the bot itself sent the message.
        is_group: True for multi-user conversations.
        participants: Ids of the conversation members (group chats only).
        fetch_media: Coroutine factory returning the media payload.
        raw: Transport-native message object, used by the transport adapter.
    """

    message_id: str
    sender_id: str
    conversation_id: str
    body: str = ""
    has_media: bool = False
    media_type: str | None = None
    is_view_once: bool = False
    from_self: bool = False
    is_group: bool = False
    participants: Tuple[str, ...] = ()
    fetch_media: MediaFetcher = field(default=_no_media, repr=False)
    raw: Any = field(default=None, repr=False, compare=False)

    @property
    def is_image(self) -> bool:
        return self.has_media and self.media_type == "image"
