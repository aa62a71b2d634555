"""
Chatwarden Bot
==============

A Discord bot that removes explicit images with a pretrained classifier and
answers ``!ai`` prompts through a local Ollama model while keeping a bounded
history per channel.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. CHATWARDEN_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("CHATWARDEN_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from dataclasses import dataclass

import discord
from dotenv import load_dotenv

from chatwarden.ai.ai_lifecycle import AIEngineLifecycle
from chatwarden.ai.generation_client import OllamaGenerationClient
from chatwarden.bot.discord_transport import DiscordTransport
from chatwarden.bot.message_handler import MessageHandler
from chatwarden.configuration.app_configuration import AppConfig, app_config
from chatwarden.conversation.conversation_manager import ConversationManager
from chatwarden.conversation.conversation_store import ConversationStore
from chatwarden.conversation.overflow_policy import OverflowPolicy
from chatwarden.conversation.prompt_assembler import PromptAssembler
from chatwarden.moderation.image_classifier import ClassifierState, ImageClassifier
from chatwarden.moderation.moderation_pipeline import ImageModerationPipeline
from chatwarden.moderation.moderation_policy import ModerationPolicy
from chatwarden.util.logger import get_logger, handle_exception


logger = get_logger("main")


@dataclass
class Runtime:
    """Objects that live from process start to process exit."""

    bot: discord.Bot
    lifecycle: AIEngineLifecycle
    store: ConversationStore


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for message content, attachments and member lists."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def build_runtime(config: AppConfig) -> Runtime:
    """Wire the bot, the moderation pipeline and the conversation manager from ``config``."""
    from chatwarden.bot.cogs import events_listener, message_listener

    moderation = config.moderation
    conversation = config.conversation
    generation = config.generation

    bot = discord.Bot(intents=build_intents())

    classifier: ImageClassifier | None = None
    pipeline: ImageModerationPipeline | None = None
    if moderation.enabled:
        classifier = ImageClassifier(moderation.classifier_model_id, moderation.device)
        pipeline = ImageModerationPipeline(
            classifier,
            ModerationPolicy(moderation.threshold, moderation.watched_labels),
            supported_formats=moderation.supported_formats,
            max_side=moderation.max_image_side,
        )

    client = OllamaGenerationClient(
        generation.base_url,
        timeout=generation.timeout_seconds,
        pull_timeout=generation.pull_timeout_seconds,
        availability_timeout=generation.availability_timeout_seconds,
        sampling_options=generation.sampling_parameters,
    )
    store = ConversationStore()
    manager = ConversationManager(
        store,
        OverflowPolicy(conversation.turn_limit),
        PromptAssembler(conversation.user_label, conversation.assistant_label),
        client,
        generation.model_id,
        error_messages=generation.error_messages,
    )
    handler = MessageHandler(
        DiscordTransport(bot),
        manager,
        pipeline,
        moderation_settings=moderation,
        conversation_settings=conversation,
        sticker_settings=config.sticker,
        command_settings=config.commands,
    )

    classifier_state = classifier.state if classifier is not None else ClassifierState()
    events_listener.setup(bot, classifier_state)
    message_listener.setup(bot, handler)
    logger.info("All cogs loaded successfully.")

    lifecycle = AIEngineLifecycle(classifier, client, generation.model_id)
    return Runtime(bot=bot, lifecycle=lifecycle, store=store)


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and log around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(runtime: Runtime) -> None:
    """Close the Discord connection and release the AI engines."""
    try:
        if not runtime.bot.is_closed():
            await runtime.bot.close()
    except Exception as exc:
        logger.exception("Error while closing the Discord client: %s", exc)

    try:
        await runtime.lifecycle.shutdown()
    except Exception as exc:
        logger.exception("Error during AI engine shutdown: %s", exc)

    logger.info("Shutdown complete; dropped %d in-memory conversations.", len(runtime.store.conversation_ids()))


async def async_main() -> int:
    """Bootstrap the AI engines and the bot, returning an exit code."""
    token = load_environment()

    try:
        runtime = build_runtime(app_config)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    try:
        available, detail = await runtime.lifecycle.initialize()
    except Exception as exc:
        logger.critical("Unexpected error during AI initialization: %s", exc)
        await shutdown_runtime(runtime)
        return 1

    if not available:
        logger.warning("Image moderation is unavailable (%s). Continuing without it.", detail or "no details")

    exit_code = 0
    try:
        await start_bot(runtime.bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(runtime)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting Chatwarden…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
