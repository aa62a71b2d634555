"""Transport-neutral handling of inbound chat messages.

Every inbound message first goes through image moderation. Messages that
survive are then checked for a command:

- ``!ai <text>``: one conversation turn against the generation backend.
- ``!reset``: clear the conversation context.
- ``!stats``: report how much of the context budget is used.
- ``!sticker`` with an image: send the image back as a sticker.
- ``!everyone``: mention every participant of a group conversation.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Tuple

from chatwarden.bot.transport import MessagingTransport
from chatwarden.configuration.settings import (
    CommandSettings,
    ConversationSettings,
    ModerationSettings,
    StickerSettings,
)
from chatwarden.conversation.conversation_manager import ConversationManager
from chatwarden.datatypes.message_datatypes import InboundMessage
from chatwarden.errors import DecodeError
from chatwarden.moderation.moderation_pipeline import ImageModerationPipeline
from chatwarden.moderation.moderation_policy import VIEW_ONCE_REASON
from chatwarden.util.logger import get_logger
from chatwarden.util.sticker_utils import make_sticker

logger = get_logger("message_handler")


def parse_command(body: str, prefix: str) -> Tuple[str, str] | None:
    """Split ``"!name rest"`` into ``("name", "rest")``; None if not a command."""
    text = body.strip()
    if not prefix or not text.startswith(prefix):
        return None
    name, _, argument = text[len(prefix):].partition(" ")
    if not name:
        return None
    return name.lower(), argument.strip()


class MessageHandler:
    """Routes inbound messages to moderation and command handlers.

    ``pipeline`` may be None when image moderation is disabled or the
    classifier failed to load; messages are then passed through unmoderated.
    """

    def __init__(
        self,
        transport: MessagingTransport,
        conversation_manager: ConversationManager,
        pipeline: ImageModerationPipeline | None = None,
        moderation_settings: ModerationSettings | None = None,
        conversation_settings: ConversationSettings | None = None,
        sticker_settings: StickerSettings | None = None,
        command_settings: CommandSettings | None = None,
    ) -> None:
        self.transport = transport
        self.conversation_manager = conversation_manager
        self.pipeline = pipeline
        self.moderation_settings = moderation_settings or ModerationSettings()
        self.conversation_settings = conversation_settings or ConversationSettings()
        self.sticker_settings = sticker_settings or StickerSettings()
        self.command_settings = command_settings or CommandSettings()
        self._commands: Dict[str, Callable[[InboundMessage, str], Awaitable[None]]] = {
            "ai": self._handle_ai,
            "reset": self._handle_reset,
            "stats": self._handle_stats,
            "sticker": self._handle_sticker,
            "everyone": self._handle_everyone,
            "todos": self._handle_everyone,
        }

    async def handle(self, message: InboundMessage) -> None:
        """Process one inbound message. Never raises."""
        if message.from_self:
            return

        try:
            if await self._moderate(message):
                return
            await self._dispatch_command(message)
        except Exception as exc:
            logger.error(
                "Error handling message %s in %s: %s",
                message.message_id,
                message.conversation_id,
                exc,
                exc_info=True,
            )

    # --------------------------
    # Moderation
    # --------------------------
    async def _moderate(self, message: InboundMessage) -> bool:
        """Run image moderation; return True if the message was removed."""
        if self.pipeline is None or not message.has_media:
            return False

        outcome = await self.pipeline.moderate(message)
        if not outcome.should_remove:
            return False

        deleted = await self.transport.delete_message(message, for_everyone=True)
        if not deleted:
            logger.warning("[MODERATION] Could not delete message %s", message.message_id)
            return False

        verdict = outcome.verdict
        if (
            verdict is not None
            and self.moderation_settings.notify_on_remove
            and VIEW_ONCE_REASON not in verdict.reasons
        ):
            await self.transport.send_text(message.conversation_id, self.moderation_settings.removal_notice)
        return True

    # --------------------------
    # Commands
    # --------------------------
    async def _dispatch_command(self, message: InboundMessage) -> None:
        parsed = parse_command(message.body, self.command_settings.prefix)
        if parsed is None:
            return

        name, argument = parsed
        command = self._commands.get(name)
        if command is None:
            return

        logger.debug("Command %s from %s in %s", name, message.sender_id, message.conversation_id)
        await command(message, argument)

    async def _handle_ai(self, message: InboundMessage, argument: str) -> None:
        if not argument:
            prefix = self.command_settings.prefix
            await self.transport.send_text(message.conversation_id, f"Usage: {prefix}ai <message>", reply_to=message)
            return

        async with self.transport.typing(message.conversation_id):
            reply = await self.conversation_manager.handle_user_message(message.conversation_id, argument)

        if reply.context_cleared:
            await self.transport.send_text(message.conversation_id, self.conversation_settings.context_cleared_notice)
        await self.transport.send_text(message.conversation_id, reply.text, reply_to=message)

    async def _handle_reset(self, message: InboundMessage, argument: str) -> None:
        await self.conversation_manager.reset(message.conversation_id)
        await self.transport.send_text(
            message.conversation_id, self.conversation_settings.context_cleared_notice, reply_to=message
        )

    async def _handle_stats(self, message: InboundMessage, argument: str) -> None:
        stats = self.conversation_manager.stats(message.conversation_id)
        text = (
            f"Messages in context: {stats.message_count}\n"
            f"Messages remaining: {stats.messages_remaining}\n"
            f"Total turns: {stats.total_messages}"
        )
        await self.transport.send_text(message.conversation_id, text, reply_to=message)

    async def _handle_sticker(self, message: InboundMessage, argument: str) -> None:
        if not message.has_media:
            return

        try:
            payload = await message.fetch_media()
            if payload is None:
                raise DecodeError("no media payload")
            sticker = await asyncio.to_thread(
                make_sticker,
                payload.data,
                self.sticker_settings.name,
                self.sticker_settings.author,
                self.sticker_settings.size,
            )
            await self.transport.send_sticker(
                message.conversation_id, sticker, self.sticker_settings.name, self.sticker_settings.author
            )
        except Exception as exc:
            logger.warning("Sticker creation failed for message %s: %s", message.message_id, exc)
            await self.transport.send_text(message.conversation_id, "Error creating sticker.", reply_to=message)

    async def _handle_everyone(self, message: InboundMessage, argument: str) -> None:
        if not message.is_group or not self.command_settings.mention_all_enabled:
            return
        await self.transport.send_text(
            message.conversation_id,
            "📢 **Calling everyone**\n\n",
            mentions=message.participants,
        )
