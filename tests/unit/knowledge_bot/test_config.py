"""
Тесты для конфигурации бота.
"""

import pytest

from knowledge_bot.config import Config, load_config


class TestConfig:
    """Тесты для Config и load_config."""

    def test_defaults(self, monkeypatch):
        for name in ("COMPRESSION_THRESHOLD", "KEEP_RECENT_MESSAGES", "CONTEXT_WINDOW_SIZE", "SUGGESTION_LIMIT"):
            monkeypatch.delenv(name, raising=False)

        config = load_config()

        assert config.COMPRESSION_THRESHOLD == 20
        assert config.KEEP_RECENT_MESSAGES == 10
        assert config.CONTEXT_WINDOW_SIZE == 15
        assert config.SUGGESTION_LIMIT == 5

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
        monkeypatch.setenv("DEEPSEEK_API_KEY", "key")
        monkeypatch.setenv("COMPRESSION_THRESHOLD", "30")
        monkeypatch.setenv("DEFAULT_TEMPERATURE", "0.2")
        monkeypatch.setenv("LOG_TO_FILE", "false")

        config = load_config()

        assert config.TELEGRAM_BOT_TOKEN == "token"
        assert config.DEEPSEEK_API_KEY == "key"
        assert config.COMPRESSION_THRESHOLD == 30
        assert config.DEFAULT_TEMPERATURE == 0.2
        assert config.LOG_TO_FILE is False

    def test_legacy_token_name(self, monkeypatch):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        monkeypatch.setenv("TELEGRAM_TOKEN", "legacy")

        assert load_config().TELEGRAM_BOT_TOKEN == "legacy"

    def test_validate(self):
        Config(TELEGRAM_BOT_TOKEN="token", DEEPSEEK_API_KEY="key").validate()

    def test_validate_missing(self):
        with pytest.raises(ValueError) as error:
            Config(TELEGRAM_BOT_TOKEN="token").validate()
        assert "DEEPSEEK_API_KEY" in str(error.value)
