from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from chatwarden.configuration.settings import (
    CommandSettings,
    ConversationSettings,
    GenerationSettings,
    ModerationSettings,
    StickerSettings,
)
from chatwarden.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    each top-level section through a typed settings helper. A missing or
    malformed file yields an empty mapping, so every helper falls back to its
    defaults.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, key: str) -> Dict[str, Any]:
        section = self._data.get(key, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping."""
        self._data = self.load_from_disk()
        return self._data

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def moderation(self) -> ModerationSettings:
        return ModerationSettings(self._section("moderation"))

    @property
    def conversation(self) -> ConversationSettings:
        return ConversationSettings(self._section("conversation"))

    @property
    def generation(self) -> GenerationSettings:
        return GenerationSettings(self._section("generation"))

    @property
    def sticker(self) -> StickerSettings:
        return StickerSettings(self._section("sticker"))

    @property
    def commands(self) -> CommandSettings:
        return CommandSettings(self._section("commands"))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
