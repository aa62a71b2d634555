"""Message listener Cog for Chatwarden.

Feeds every new Discord message into the transport-neutral
:class:`~chatwarden.bot.message_handler.MessageHandler`.
"""

import discord
from discord.ext import commands

from chatwarden.bot.discord_transport import to_inbound_message
from chatwarden.bot.message_handler import MessageHandler
from chatwarden.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Cog responsible for handling message creation events."""

    def __init__(self, discord_bot_instance, handler: MessageHandler):
        self.bot = discord_bot_instance
        self.handler = handler
        logger.info("Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """Convert the message and hand it to the message handler."""
        # Covers the bot's own messages as well.
        if message.author.bot:
            return

        inbound = to_inbound_message(message, self.bot.user)

        preview = inbound.body[:80] if inbound.body else "[no text]"
        if inbound.has_media:
            preview = f"{preview} [{inbound.media_type}]"
        logger.debug("Received message from %s: %s", message.author, preview)

        await self.handler.handle(inbound)


def setup(discord_bot_instance, handler: MessageHandler):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, handler))
