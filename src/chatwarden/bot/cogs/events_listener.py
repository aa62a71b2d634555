"""Event listener Cog for Chatwarden.

Handles the ``on_ready`` lifecycle event and advertises whether image
moderation is active through the bot presence.
"""

import discord
from discord.ext import commands

from chatwarden.moderation.image_classifier import ClassifierState
from chatwarden.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle handlers."""

    def __init__(self, discord_bot_instance, classifier_state: ClassifierState):
        self.bot = discord_bot_instance
        self.classifier_state = classifier_state
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        if self.bot.user:
            await self._update_presence()
            logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

    async def _update_presence(self) -> None:
        if self.classifier_state.available:
            status = discord.Status.online
            activity_name = "for explicit images"
        else:
            status = discord.Status.idle
            activity_name = "chat (image moderation offline)"

        await self.bot.change_presence(
            status=status,
            activity=discord.Activity(type=discord.ActivityType.watching, name=activity_name),
        )


def setup(discord_bot_instance, classifier_state: ClassifierState):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, classifier_state))
