"""Lifecycle management for the image classifier and the generation backend."""
from __future__ import annotations

from typing import Optional, Tuple

from chatwarden.ai.generation_client import OllamaGenerationClient
from chatwarden.moderation.image_classifier import ImageClassifier
from chatwarden.util.logger import get_logger

logger = get_logger("ai_lifecycle")


class AIEngineLifecycle:
    """Load the classifier before the bot connects and release everything on shutdown.

    ``classifier`` is None when image moderation is disabled in the config.
    """

    def __init__(
        self,
        classifier: ImageClassifier | None,
        client: OllamaGenerationClient,
        model_id: str,
    ) -> None:
        self._classifier = classifier
        self._client = client
        self._model_id = model_id

    async def initialize(self) -> Tuple[bool, Optional[str]]:
        """Load the classifier and warm up the backend.

        Returns:
            ``(available, error)`` of the image classifier. The generation
            backend is only checked and logged; it is pulled lazily again on
            the first ``!ai`` call if it is down now.
        """
        available, error = False, "image moderation disabled"
        if self._classifier is not None:
            logger.info("[AI LIFECYCLE] Loading image classifier…")
            available = await self._classifier.load()
            error = self._classifier.state.init_error

        if await self._client.is_available():
            ready = await self._client.ensure_model(self._model_id)
            logger.info("[AI LIFECYCLE] Generation backend reachable (model %s ready: %s)", self._model_id, ready)
        else:
            logger.warning("[AI LIFECYCLE] Generation backend unreachable; !ai replies will report errors until it is up")

        return available, error

    async def shutdown(self) -> None:
        logger.info("[AI LIFECYCLE] Shutting down AI engines…")
        if self._classifier is not None:
            await self._classifier.unload()
        self._client.close()
