"""Image moderation pipeline.

Turns one inbound message into a :class:`ModerationOutcome`:

1. View-once media is removed outright; nothing is downloaded or classified.
2. Non-image media is skipped.
3. The payload is fetched and decoded. Undecodable images are skipped
   (fail-open).
4. The decoded pixels are classified, released, and run through the policy.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from chatwarden.datatypes.image_datatypes import (
    ClassificationResult,
    Decoded,
    ModerationOutcome,
    PixelGrid,
)
from chatwarden.datatypes.message_datatypes import InboundMessage
from chatwarden.errors import PolicyConfigError
from chatwarden.moderation.image_decoder import DEFAULT_FORMATS, decode_image
from chatwarden.moderation.moderation_policy import ModerationPolicy
from chatwarden.util.logger import get_logger

logger = get_logger("moderation_pipeline")


class Classifier(Protocol):
    async def classify(self, pixels: PixelGrid) -> ClassificationResult: ...


class ImageModerationPipeline:
    """Decode, classify and judge inbound images.

    Args:
        classifier: Loaded image classifier.
        policy: Threshold policy applied to the classifier output.
        supported_formats: Pillow format names the decoder accepts.
        max_side: Longest side images are scaled down to before classification.
    """

    def __init__(
        self,
        classifier: Classifier,
        policy: ModerationPolicy,
        supported_formats: Iterable[str] = DEFAULT_FORMATS,
        max_side: int = 512,
    ) -> None:
        self.classifier = classifier
        self.policy = policy
        self.supported_formats = tuple(supported_formats)
        self.max_side = max_side

    async def moderate(self, message: InboundMessage) -> ModerationOutcome:
        if not message.has_media:
            return ModerationOutcome(skipped_reason="no media")

        if message.is_view_once:
            logger.warning(
                "[MODERATION] View-once media from %s in %s; removing",
                message.sender_id,
                message.conversation_id,
            )
            return ModerationOutcome(verdict=self.policy.view_once_verdict())

        if not message.is_image:
            return ModerationOutcome(skipped_reason=f"media type {message.media_type!r} is not moderated")

        try:
            payload = await message.fetch_media()
        except Exception as exc:
            logger.warning("[MODERATION] Could not fetch media for message %s: %s", message.message_id, exc)
            return ModerationOutcome(skipped_reason=f"media fetch failed: {exc}")

        if payload is None or not payload.data:
            logger.debug("[MODERATION] No media payload for message %s", message.message_id)
            return ModerationOutcome(skipped_reason="media unavailable")

        decoded = decode_image(payload.data, self.supported_formats, self.max_side)
        if not isinstance(decoded, Decoded):
            logger.debug(
                "[MODERATION] Image in message %s left unmoderated: %s",
                message.message_id,
                decoded.reason,
            )
            return ModerationOutcome(skipped_reason=decoded.reason)

        try:
            with decoded.pixels as pixels:
                result = await self.classifier.classify(pixels)
        except RuntimeError as exc:
            logger.error("[MODERATION] Classifier unavailable, skipping message %s: %s", message.message_id, exc)
            return ModerationOutcome(skipped_reason=f"classifier unavailable: {exc}")

        logger.info("[MODERATION] Analysed image %s: %s", message.message_id, result.format_summary())

        try:
            verdict = self.policy.decide(result)
        except PolicyConfigError as exc:
            logger.error("[MODERATION] Policy misconfigured, skipping message %s: %s", message.message_id, exc)
            return ModerationOutcome(skipped_reason=f"policy misconfigured: {exc}")

        if verdict.should_remove:
            logger.warning(
                "[MODERATION] Removing image %s from %s (%s)",
                message.message_id,
                message.sender_id,
                verdict.reason,
            )
        return ModerationOutcome(verdict=verdict)
