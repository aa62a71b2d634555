"""Tests for the image moderation pipeline."""

import io

import pytest
from PIL import Image

from chatwarden.datatypes.image_datatypes import ClassificationResult, ModerationAction
from chatwarden.moderation.moderation_pipeline import ImageModerationPipeline
from chatwarden.moderation.moderation_policy import ModerationPolicy


def jpeg_bytes(fmt="JPEG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (32, 32), color="red").save(buffer, format=fmt)
    return buffer.getvalue()


class CountingClassifier:
    """Returns fixed scores and records each call."""

    def __init__(self, scores=None, error=None):
        self.scores = scores or {"Drawing": 0.0, "Hentai": 0.0, "Neutral": 1.0, "Porn": 0.0, "Sexy": 0.0}
        self.error = error
        self.calls = 0
        self.seen = []

    async def classify(self, pixels):
        self.calls += 1
        self.seen.append(pixels)
        if self.error is not None:
            raise self.error
        return ClassificationResult(self.scores)


def build_pipeline(classifier):
    return ImageModerationPipeline(classifier, ModerationPolicy())


class TestImageModerationPipeline:
    """Tests for ImageModerationPipeline.moderate."""

    @pytest.mark.asyncio
    async def test_view_once_removed_without_classification(self, make_message):
        classifier = CountingClassifier()
        message = make_message(media=jpeg_bytes(), is_view_once=True)

        outcome = await build_pipeline(classifier).moderate(message)

        assert outcome.should_remove is True
        assert outcome.verdict.reasons == ("view-once",)
        assert classifier.calls == 0

    @pytest.mark.asyncio
    async def test_explicit_image_removed(self, make_message):
        classifier = CountingClassifier({"Drawing": 0.0, "Hentai": 0.1, "Neutral": 0.0, "Porn": 0.61, "Sexy": 0.2})

        outcome = await build_pipeline(classifier).moderate(make_message(media=jpeg_bytes()))

        assert outcome.verdict.action is ModerationAction.REMOVE
        assert outcome.verdict.reasons == ("Porn",)
        assert classifier.calls == 1

    @pytest.mark.asyncio
    async def test_clean_image_allowed(self, make_message):
        classifier = CountingClassifier()

        outcome = await build_pipeline(classifier).moderate(make_message(media=jpeg_bytes()))

        assert outcome.verdict.action is ModerationAction.ALLOW
        assert outcome.should_remove is False

    @pytest.mark.asyncio
    async def test_undecodable_image_fails_open(self, make_message):
        classifier = CountingClassifier()

        outcome = await build_pipeline(classifier).moderate(make_message(media=jpeg_bytes("PNG")))

        assert outcome.verdict is None
        assert "PNG" in outcome.skipped_reason
        assert classifier.calls == 0

    @pytest.mark.asyncio
    async def test_non_image_media_skipped(self, make_message):
        classifier = CountingClassifier()

        outcome = await build_pipeline(classifier).moderate(make_message(media=b"x", media_type="sticker"))

        assert outcome.verdict is None
        assert classifier.calls == 0

    @pytest.mark.asyncio
    async def test_text_only_message_skipped(self, make_message):
        outcome = await build_pipeline(CountingClassifier()).moderate(make_message(body="hello"))

        assert outcome.skipped_reason == "no media"

    @pytest.mark.asyncio
    async def test_missing_payload_skipped(self, make_message):
        message = make_message(has_media=True)

        outcome = await build_pipeline(CountingClassifier()).moderate(message)

        assert outcome.skipped_reason == "media unavailable"

    @pytest.mark.asyncio
    async def test_failed_fetch_is_skipped(self, make_message):
        classifier = CountingClassifier()
        message = make_message(has_media=True)

        async def broken_fetch():
            raise ConnectionError("attachment download failed")

        message.fetch_media = broken_fetch

        outcome = await build_pipeline(classifier).moderate(message)

        assert outcome.verdict is None
        assert outcome.skipped_reason.startswith("media fetch failed")
        assert classifier.calls == 0

    @pytest.mark.asyncio
    async def test_vocabulary_mismatch_is_skipped_not_allowed(self, make_message):
        classifier = CountingClassifier({"normal": 0.2, "nsfw": 0.8})

        outcome = await build_pipeline(classifier).moderate(make_message(media=jpeg_bytes()))

        assert outcome.verdict is None
        assert outcome.skipped_reason.startswith("policy misconfigured")

    @pytest.mark.asyncio
    async def test_classifier_not_loaded_is_skipped(self, make_message):
        classifier = CountingClassifier(error=RuntimeError("image classifier not loaded"))

        outcome = await build_pipeline(classifier).moderate(make_message(media=jpeg_bytes()))

        assert outcome.verdict is None
        assert "not loaded" in outcome.skipped_reason
