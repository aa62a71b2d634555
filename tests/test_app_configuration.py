import json
from pathlib import Path

import pytest

from chatwarden.configuration.app_configuration import AppConfig
from chatwarden.conversation.conversation_manager import DEFAULT_ERROR_MESSAGES


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    config_payload = {
        "moderation": {
            "threshold": 0.8,
            "watched_labels": ["Porn"],
            "supported_formats": ["jpeg", "png"],
            "classifier_model_id": "local/nsfw",
        },
        "conversation": {"turn_limit": 10, "user_label": "Usuario", "assistant_label": "Asistente"},
        "generation": {"model_id": "mistral", "timeout_seconds": 12, "sampling_parameters": {"temperature": 0.2}},
    }
    # JSON is valid YAML
    config_path.write_text(json.dumps(config_payload), encoding="utf-8")

    config = AppConfig(config_path)

    moderation = config.moderation
    assert moderation.threshold == pytest.approx(0.8)
    assert moderation.watched_labels == ("Porn",)
    assert moderation.supported_formats == ("JPEG", "PNG")
    assert moderation.classifier_model_id == "local/nsfw"

    conversation = config.conversation
    assert conversation.turn_limit == 10
    assert conversation.user_label == "Usuario"
    assert conversation.assistant_label == "Asistente"

    generation = config.generation
    assert generation.model_id == "mistral"
    assert generation.timeout_seconds == pytest.approx(12)
    assert generation.sampling_parameters == {"temperature": 0.2}


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.reload() == {}
    assert config.moderation.enabled is True
    assert config.moderation.threshold == pytest.approx(0.60)
    assert config.moderation.watched_labels == ("Porn", "Hentai")
    assert config.moderation.supported_formats == ("JPEG",)
    assert config.conversation.turn_limit == 60
    assert config.generation.model_id == "llama3.2"
    assert config.generation.timeout_seconds == pytest.approx(30)
    assert config.generation.pull_timeout_seconds == pytest.approx(300)
    assert config.commands.prefix == "!"


def test_app_config_non_mapping_is_ignored(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.reload() == {}
    assert config.conversation.turn_limit == 60


def test_app_config_malformed_section_falls_back(config_path: Path) -> None:
    config_path.write_text("conversation: 5\n", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.conversation.turn_limit == 60


def test_generation_base_url_prefers_environment(monkeypatch, config_path: Path) -> None:
    config_path.write_text("generation:\n  host: ollama.internal\n  port: 1234\n", encoding="utf-8")
    monkeypatch.delenv("OLLAMA_HOST", raising=False)
    monkeypatch.delenv("OLLAMA_PORT", raising=False)

    config = AppConfig(config_path)
    assert config.generation.base_url == "http://ollama.internal:1234"

    monkeypatch.setenv("OLLAMA_HOST", "https://gpu-box")
    monkeypatch.setenv("OLLAMA_PORT", "8080")
    assert config.generation.base_url == "https://gpu-box:8080"


def test_generation_error_messages_merge_custom(config_path: Path) -> None:
    config_path.write_text(
        "generation:\n  error_messages:\n    timeout: too slow\n    bogus: ignored\n", encoding="utf-8"
    )

    messages = AppConfig(config_path).generation.error_messages

    assert messages["timeout"] == "too slow"
    assert "bogus" not in messages
    assert set(messages) == {"unavailable", "timeout", "other"}


def test_generation_error_messages_default_to_manager_messages(tmp_path: Path) -> None:
    messages = AppConfig(tmp_path / "missing.yml").generation.error_messages

    assert messages == DEFAULT_ERROR_MESSAGES
    assert messages is not DEFAULT_ERROR_MESSAGES
