"""Tests for the py-cord transport adapter."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from chatwarden.bot.discord_transport import (
    DiscordTransport,
    attachment_media_type,
    split_message,
    to_inbound_message,
)
from chatwarden.datatypes.message_datatypes import InboundMessage


def make_attachment(content_type=None, filename="file.bin", data=b"data"):
    return SimpleNamespace(content_type=content_type, filename=filename, read=AsyncMock(return_value=data))


def http_response(status):
    response = MagicMock()
    response.status = status
    response.reason = "error"
    return response


class TestAttachmentMediaType:
    """Tests for attachment_media_type."""

    @pytest.mark.parametrize(
        "content_type, filename, expected",
        [
            ("image/jpeg", "a.jpg", "image"),
            ("video/mp4", "a.mp4", "video"),
            ("audio/ogg", "voice.ogg", "audio"),
            (None, "photo.JPEG", "image"),
            (None, "notes.txt", "file"),
            ("application/pdf", "doc.pdf", "file"),
        ],
    )
    def test_media_type(self, content_type, filename, expected):
        assert attachment_media_type(make_attachment(content_type, filename)) == expected


class TestSplitMessage:
    """Tests for split_message."""

    def test_short_text_is_one_chunk(self):
        assert split_message("hello") == ["hello"]

    def test_empty_text_is_one_empty_chunk(self):
        assert split_message("") == [""]

    def test_mentions_are_never_cut(self):
        mentions = " ".join(f"<@{100000 + i}>" for i in range(30))

        chunks = split_message(mentions, limit=50)

        assert all(len(chunk) <= 50 for chunk in chunks)
        assert " ".join(chunks).split() == mentions.split()
        for chunk in chunks:
            assert all(token.startswith("<@") and token.endswith(">") for token in chunk.split())

    def test_breaks_on_newline(self):
        assert split_message("aaaa\nbbbb", limit=6) == ["aaaa", "bbbb"]

    def test_long_word_is_cut_hard(self):
        assert split_message("x" * 12, limit=5) == ["xxxxx", "xxxxx", "xx"]


class TestToInboundMessage:
    """Tests for to_inbound_message."""

    def make_discord_message(self, attachments=(), guild=None, ephemeral=False, author_id=7):
        return SimpleNamespace(
            id=100,
            author=SimpleNamespace(id=author_id),
            channel=SimpleNamespace(id=200),
            content="!ai hi",
            attachments=list(attachments),
            stickers=[],
            guild=guild,
            flags=SimpleNamespace(ephemeral=ephemeral),
        )

    @pytest.mark.asyncio
    async def test_image_attachment(self):
        attachment = make_attachment("image/jpeg", "photo.jpg", b"jpeg-bytes")
        raw = self.make_discord_message(attachments=[make_attachment("text/plain", "a.txt"), attachment])

        inbound = to_inbound_message(raw, SimpleNamespace(id=1))

        assert inbound.message_id == "100"
        assert inbound.conversation_id == "200"
        assert inbound.is_image is True
        assert inbound.from_self is False
        payload = await inbound.fetch_media()
        assert payload.data == b"jpeg-bytes"
        assert payload.filename == "photo.jpg"

    def test_group_participants_exclude_bots(self):
        guild = SimpleNamespace(members=[SimpleNamespace(id=7, bot=False), SimpleNamespace(id=1, bot=True)])

        inbound = to_inbound_message(self.make_discord_message(guild=guild), SimpleNamespace(id=1))

        assert inbound.is_group is True
        assert inbound.participants == ("7",)

    def test_ephemeral_is_view_once_and_own_messages_flagged(self):
        raw = self.make_discord_message(ephemeral=True, author_id=1)

        inbound = to_inbound_message(raw, SimpleNamespace(id=1))

        assert inbound.is_view_once is True
        assert inbound.from_self is True
        assert inbound.has_media is False


class TestDiscordTransport:
    """Tests for DiscordTransport."""

    @pytest.mark.asyncio
    async def test_delete_success(self):
        raw = MagicMock()
        raw.delete = AsyncMock()
        message = InboundMessage("m1", "u1", "c1", raw=raw)

        assert await DiscordTransport(MagicMock()).delete_message(message) is True
        raw.delete.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            discord.NotFound(http_response(404), "gone"),
            discord.Forbidden(http_response(403), "nope"),
            discord.HTTPException(http_response(500), "boom"),
        ],
    )
    async def test_delete_failures_return_false(self, error):
        raw = MagicMock()
        raw.delete = AsyncMock(side_effect=error)
        message = InboundMessage("m1", "u1", "c1", raw=raw)

        assert await DiscordTransport(MagicMock()).delete_message(message) is False

    @pytest.mark.asyncio
    async def test_delete_without_raw_message(self):
        assert await DiscordTransport(MagicMock()).delete_message(InboundMessage("m1", "u1", "c1")) is False

    @pytest.mark.asyncio
    async def test_send_text_appends_mentions_and_splits(self):
        channel = MagicMock()
        channel.send = AsyncMock()
        bot = MagicMock()
        bot.get_channel.return_value = channel

        await DiscordTransport(bot).send_text("200", "x" * 2000, mentions=("5",))

        bot.get_channel.assert_called_once_with(200)
        sent = [call.args[0] for call in channel.send.await_args_list]
        assert sent == ["x" * 2000, "<@5>"]
