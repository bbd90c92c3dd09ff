"""Tests for intentlite.config module.

Covers:
- AppSettings defaults and environment variable support
- Validation of provider and log level
- setup_logging handlers
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from pydantic import ValidationError

from intentlite.config import HANDLER_NAME, LOG_FORMAT, AppSettings, setup_logging

# ============================================================================
# AppSettings Tests
# ============================================================================


class TestAppSettings:
    """Tests for AppSettings."""

    def test_default_values(self, monkeypatch):
        """AppSettings has sensible defaults."""
        for name in (
            "PROVIDER", "INTENT_CONFIG_PATH", "MODEL", "LOG_LEVEL",
            "OPENAI_ENDPOINT", "OPENAI_MODEL",
        ):
            monkeypatch.delenv(f"INTENTLITE_{name}", raising=False)

        settings = AppSettings()

        assert settings.provider == "rules"
        assert settings.intent_config_path is None
        assert settings.fallback_to_default is False
        assert settings.ollama_endpoint == "http://localhost:11434"
        assert settings.model == "llama3.2:latest"
        assert settings.log_level == "WARNING"
        assert settings.log_file is None
        assert settings.openai_endpoint == "https://api.openai.com"
        assert settings.openai_model == "gpt-4o-mini"

    def test_env_vars(self, monkeypatch):
        """Settings are read from INTENTLITE_* environment variables."""
        monkeypatch.setenv("INTENTLITE_PROVIDER", "OLLAMA")
        monkeypatch.setenv("INTENTLITE_INTENT_CONFIG_PATH", "/etc/intents.yaml")
        monkeypatch.setenv("INTENTLITE_FALLBACK_TO_DEFAULT", "true")
        monkeypatch.setenv("INTENTLITE_MAX_TOKENS", "64")
        monkeypatch.setenv("INTENTLITE_LOG_LEVEL", "debug")

        settings = AppSettings()

        assert settings.provider == "ollama"
        assert settings.intent_config_path == Path("/etc/intents.yaml")
        assert settings.fallback_to_default is True
        assert settings.max_tokens == 64
        assert settings.log_level == "DEBUG"

    def test_openai_env_vars(self, monkeypatch):
        """OpenAI settings are read from INTENTLITE_OPENAI_* variables."""
        monkeypatch.setenv("INTENTLITE_PROVIDER", "openai")
        monkeypatch.setenv("INTENTLITE_OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("INTENTLITE_OPENAI_MODEL", "gpt-env")

        settings = AppSettings()

        assert settings.provider == "openai"
        assert settings.openai_api_key == "sk-env"
        assert settings.openai_model == "gpt-env"

    def test_unknown_provider_rejected(self):
        """Only known providers are accepted."""
        with pytest.raises(ValidationError):
            AppSettings(provider="cohere")

    def test_unknown_log_level_rejected(self):
        """Log level must be a logging level name."""
        with pytest.raises(ValidationError):
            AppSettings(log_level="LOUD")

    def test_temperature_bounds(self):
        """Temperature must be within [0, 2]."""
        with pytest.raises(ValidationError):
            AppSettings(temperature=3.0)


# ============================================================================
# setup_logging Tests
# ============================================================================


@pytest.fixture
def clean_root_logger():
    """Restore root logger handlers and level after a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_stream_handler_by_default(self, clean_root_logger):
        """Without a log file, logs go to stderr."""
        before = set(clean_root_logger.handlers)

        logger = setup_logging(AppSettings(log_level="INFO", log_file=None))

        added = [h for h in clean_root_logger.handlers if h not in before]
        assert len(added) == 1
        assert isinstance(added[0], logging.StreamHandler)
        assert added[0].formatter._fmt == LOG_FORMAT
        assert clean_root_logger.level == logging.INFO
        assert logger.name == "intentlite"

    def test_rotating_file_handler(self, clean_root_logger, tmp_path: Path):
        """With a log file, a rotating handler is used and the directory created."""
        log_file = tmp_path / "logs" / "intentlite.log"
        before = set(clean_root_logger.handlers)

        setup_logging(AppSettings(log_level="DEBUG", log_file=log_file))

        added = [h for h in clean_root_logger.handlers if h not in before]
        assert len(added) == 1
        assert isinstance(added[0], RotatingFileHandler)
        assert added[0].maxBytes == 5 * 1024 * 1024
        assert added[0].backupCount == 3
        assert log_file.parent.is_dir()

    def test_repeated_setup_replaces_handler(self, clean_root_logger, tmp_path: Path):
        """Calling setup_logging again swaps its handler instead of adding one."""
        setup_logging(AppSettings(log_level="INFO"))
        setup_logging(AppSettings(log_level="DEBUG", log_file=tmp_path / "app.log"))

        ours = [h for h in clean_root_logger.handlers if h.get_name() == HANDLER_NAME]
        assert len(ours) == 1
        assert isinstance(ours[0], RotatingFileHandler)
        assert clean_root_logger.level == logging.DEBUG
