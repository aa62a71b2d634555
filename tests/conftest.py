"""
Pytest configuration and fixtures for Chatwarden tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from chatwarden.datatypes.message_datatypes import InboundMessage, MediaPayload  # noqa: E402


class FakeGenerationClient:
    """Records prompts and returns scripted answers or raises scripted errors."""

    def __init__(self, answers=None, error=None):
        self.answers = list(answers or [])
        self.error = error
        self.prompts = []

    async def generate(self, prompt, model_id):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.answers:
            return self.answers.pop(0)
        return f"answer {len(self.prompts)}"


@pytest.fixture
def fake_client():
    return FakeGenerationClient()


@pytest.fixture
def make_message():
    """Factory for InboundMessage objects with an optional media payload."""

    def _make(body="", media: bytes | None = None, media_type=None, **kwargs):
        async def fetch_media():
            if media is None:
                return None
            return MediaPayload(data=media, mimetype="image/jpeg", filename="photo.jpg")

        has_media = media is not None or kwargs.pop("has_media", False)
        if has_media and media_type is None:
            media_type = "image"
        return InboundMessage(
            message_id=kwargs.pop("message_id", "m1"),
            sender_id=kwargs.pop("sender_id", "u1"),
            conversation_id=kwargs.pop("conversation_id", "c1"),
            body=body,
            has_media=has_media,
            media_type=media_type,
            fetch_media=fetch_media,
            **kwargs,
        )

    return _make
