"""intentlite configuration.

Includes:
- AppSettings: process settings with environment variable support
- setup_logging: root logger configuration for the CLI

Environment Variables:
    INTENTLITE_PROVIDER: Extractor to use ("rules", "ollama" or "openai")
    INTENTLITE_INTENT_CONFIG_PATH: JSON/YAML intent configuration file
    INTENTLITE_FALLBACK_TO_DEFAULT: Use the built-in config if the file fails
    INTENTLITE_OLLAMA_ENDPOINT: Ollama API endpoint URL
    INTENTLITE_MODEL: Ollama model name
    INTENTLITE_OPENAI_ENDPOINT: OpenAI-compatible API base URL
    INTENTLITE_OPENAI_API_KEY: API key for the OpenAI extractor
    INTENTLITE_OPENAI_MODEL: OpenAI chat model name
    INTENTLITE_LOG_LEVEL: Logging level (DEBUG, INFO, ...)
    INTENTLITE_LOG_FILE: Rotating log file path (stderr when unset)
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Name given to the handler installed by setup_logging
HANDLER_NAME = "intentlite"


class AppSettings(BaseSettings):
    """Application settings with environment variable support.

    Settings are loaded from environment variables with the INTENTLITE_
    prefix. For example, INTENTLITE_OLLAMA_ENDPOINT sets ollama_endpoint.
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTLITE_",
        extra="ignore",
        protected_namespaces=(),  # Allow the "model" field name
    )

    provider: Literal["rules", "ollama", "openai"] = "rules"

    # Intent configuration; None means the built-in default
    intent_config_path: Optional[Path] = None
    fallback_to_default: bool = False

    # Model settings; model/endpoint are Ollama's, the rest are shared
    ollama_endpoint: str = "http://localhost:11434"
    model: str = "llama3.2:latest"
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_tokens: int = Field(default=256, gt=0)
    timeout: float = Field(default=30.0, gt=0)

    # OpenAI-compatible API
    openai_endpoint: str = "https://api.openai.com"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @field_validator("provider", mode="before")
    @classmethod
    def _lower_provider(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {v}")
        return level


def setup_logging(settings: AppSettings) -> logging.Logger:
    """Configure the root logger from settings.

    Writes to a rotating file (5MB max, 3 backups) when ``log_file`` is
    set, otherwise to stderr.

    Args:
        settings: Application settings

    Returns:
        The package logger
    """
    if settings.log_file is not None:
        log_file = settings.log_file.expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.set_name(HANDLER_NAME)

    root_logger = logging.getLogger()
    # Replace the handler from an earlier call instead of stacking another
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
            existing.close()
    root_logger.setLevel(settings.log_level)
    root_logger.addHandler(handler)

    return logging.getLogger("intentlite")


__all__ = ["AppSettings", "HANDLER_NAME", "LOG_FORMAT", "setup_logging"]
