import os
from typing import Any, Dict, Tuple

from chatwarden.conversation.conversation_manager import DEFAULT_ERROR_MESSAGES


class SectionSettings:
    """Base helper exposing typed accessors over one YAML section."""

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data if isinstance(data, dict) else {}


class ModerationSettings(SectionSettings):
    """Settings of the image moderation pipeline (``moderation`` section)."""

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", True))

    @property
    def classifier_model_id(self) -> str:
        return str(self.data.get("classifier_model_id") or "giacomoarienti/nsfw-classifier")

    @property
    def device(self) -> str:
        return str(self.data.get("device") or "cpu")

    @property
    def threshold(self) -> float:
        return float(self.data.get("threshold", 0.60))

    @property
    def watched_labels(self) -> Tuple[str, ...]:
        labels = self.data.get("watched_labels") or ["Porn", "Hentai"]
        return tuple(str(label) for label in labels)

    @property
    def supported_formats(self) -> Tuple[str, ...]:
        formats = self.data.get("supported_formats") or ["JPEG"]
        return tuple(str(fmt).upper() for fmt in formats)

    @property
    def max_image_side(self) -> int:
        return int(self.data.get("max_image_side", 512))

    @property
    def notify_on_remove(self) -> bool:
        return bool(self.data.get("notify_on_remove", True))

    @property
    def removal_notice(self) -> str:
        return str(self.data.get("removal_notice") or "⚠️ Image removed for inappropriate content.")


class ConversationSettings(SectionSettings):
    """Settings of the conversation context (``conversation`` section)."""

    @property
    def turn_limit(self) -> int:
        return int(self.data.get("turn_limit", 60))

    @property
    def user_label(self) -> str:
        return str(self.data.get("user_label") or "User")

    @property
    def assistant_label(self) -> str:
        return str(self.data.get("assistant_label") or "Assistant")

    @property
    def context_cleared_notice(self) -> str:
        return str(
            self.data.get("context_cleared_notice")
            or "Context limit reached, conversation history cleared."
        )


class GenerationSettings(SectionSettings):
    """Settings of the Ollama backend (``generation`` section).

    ``OLLAMA_HOST`` and ``OLLAMA_PORT`` from the environment take precedence
    over the file values.
    """

    @property
    def host(self) -> str:
        return os.getenv("OLLAMA_HOST") or str(self.data.get("host") or "localhost")

    @property
    def port(self) -> str:
        return os.getenv("OLLAMA_PORT") or str(self.data.get("port") or "11434")

    @property
    def base_url(self) -> str:
        host = self.host
        if not host.startswith(("http://", "https://")):
            host = f"http://{host}"
        return f"{host}:{self.port}"

    @property
    def model_id(self) -> str:
        return str(self.data.get("model_id") or "llama3.2")

    @property
    def timeout_seconds(self) -> float:
        return float(self.data.get("timeout_seconds", 30.0))

    @property
    def pull_timeout_seconds(self) -> float:
        return float(self.data.get("pull_timeout_seconds", 300.0))

    @property
    def availability_timeout_seconds(self) -> float:
        return float(self.data.get("availability_timeout_seconds", 5.0))

    @property
    def sampling_parameters(self) -> Dict[str, Any]:
        params = self.data.get("sampling_parameters")
        if not isinstance(params, dict):
            return {"temperature": 0.7, "num_predict": 500}
        return params

    @property
    def error_messages(self) -> Dict[str, str]:
        defaults = dict(DEFAULT_ERROR_MESSAGES)
        custom = self.data.get("error_messages")
        if isinstance(custom, dict):
            defaults.update({key: str(value) for key, value in custom.items() if key in defaults})
        return defaults


class StickerSettings(SectionSettings):
    """Pack metadata used by ``!sticker`` (``sticker`` section)."""

    @property
    def name(self) -> str:
        return str(self.data.get("name") or "Chatwarden Stickers")

    @property
    def author(self) -> str:
        return str(self.data.get("author") or "Chatwarden")

    @property
    def size(self) -> int:
        return int(self.data.get("size", 512))


class CommandSettings(SectionSettings):
    """Prefix and per-command toggles (``commands`` section)."""

    @property
    def prefix(self) -> str:
        return str(self.data.get("prefix") or "!")

    @property
    def mention_all_enabled(self) -> bool:
        return bool(self.data.get("mention_all_enabled", True))
