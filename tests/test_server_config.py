from __future__ import annotations

import os
from pathlib import Path

import pytest

from server_config import (
    DEFAULT_API_ROOT,
    BotSettings,
    configure_flask_environment,
    load_env_file,
    mask_token,
)


def test_settings_from_empty_environment():
    settings = BotSettings.from_env({})

    assert settings.token is None
    assert not settings.has_token
    assert settings.api_root == DEFAULT_API_ROOT
    assert settings.api_timeout is None
    assert settings.log_level == "INFO"
    assert settings.texts_path is None


def test_settings_from_environment_values():
    settings = BotSettings.from_env(
        {
            "TELEGRAM_BOT_TOKEN": " 123:abc ",
            "TELEGRAM_API_ROOT": "http://localhost:8081/",
            "TELEGRAM_API_TIMEOUT": "5",
            "TELEGRAM_LOG_LEVEL": "debug",
            "TELEGRAM_TEXTS_PATH": "/etc/bot/texts.json",
        }
    )

    assert settings.token == "123:abc"
    assert settings.api_root == "http://localhost:8081"
    assert settings.api_timeout == 5.0
    assert settings.log_level == "DEBUG"
    assert settings.texts_path == Path("/etc/bot/texts.json")


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_invalid_timeout_means_no_timeout(raw):
    assert BotSettings.from_env({"TELEGRAM_API_TIMEOUT": raw}).api_timeout is None


def test_settings_are_read_only():
    settings = BotSettings(token="x")

    with pytest.raises(AttributeError):
        settings.token = "y"


def test_mask_token():
    assert mask_token("123456:ABCDEFGH") == "12345...GH"
    assert mask_token("short") == "***"


def test_load_env_file_does_not_override(tmp_path, monkeypatch):
    secrets = tmp_path / "tokens.env"
    secrets.write_text(
        "# comment\n\nTELEGRAM_BOT_TOKEN='from-file'\nBROKEN LINE\nEXISTING=new\n",
        encoding="utf-8",
    )
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.setenv("EXISTING", "old")

    load_env_file(secrets)

    assert os.environ["TELEGRAM_BOT_TOKEN"] == "from-file"
    assert os.environ["EXISTING"] == "old"


def test_configure_flask_environment(monkeypatch):
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.delenv("FLASK_RUN_PORT", raising=False)
    monkeypatch.delenv("FLASK_RUN_HOST", raising=False)

    assert configure_flask_environment() == 9100
    assert os.environ["FLASK_RUN_PORT"] == "9100"
    assert os.environ["FLASK_RUN_HOST"] == "0.0.0.0"


def test_configure_flask_environment_malformed_port(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    monkeypatch.delenv("FLASK_RUN_PORT", raising=False)

    assert configure_flask_environment(default_port=8123) == 8123
