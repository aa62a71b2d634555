"""Outbound interface the core needs from the chat transport."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, Sequence

from chatwarden.datatypes.message_datatypes import InboundMessage, MediaPayload


class MessagingTransport(Protocol):
    """Operations the message handler performs on the chat platform."""

    async def send_text(
        self,
        conversation_id: str,
        text: str,
        reply_to: InboundMessage | None = None,
        mentions: Sequence[str] = (),
    ) -> None: ...

    async def send_sticker(self, conversation_id: str, payload: MediaPayload, name: str, author: str) -> None: ...

    async def delete_message(self, message: InboundMessage, for_everyone: bool = True) -> bool: ...

    def typing(self, conversation_id: str) -> AbstractAsyncContextManager[None]: ...
