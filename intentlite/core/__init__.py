"""Core components for intentlite."""

from __future__ import annotations

from .intent import (
    ConfigError,
    ExtractionResult,
    IntentConfig,
    IntentEngine,
    create_engine,
    load_config,
)

__all__ = [
    "ConfigError",
    "ExtractionResult",
    "IntentConfig",
    "IntentEngine",
    "create_engine",
    "load_config",
]
