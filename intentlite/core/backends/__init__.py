"""Intent extraction backends for intentlite.

This package provides interchangeable extractors behind one interface:
- RuleBasedExtractor: the in-process configurable rule engine
- OllamaExtractor: a model served by Ollama over HTTP
- OpenAIExtractor: an OpenAI-compatible chat completion API

Usage:
    from intentlite.config import AppSettings
    from intentlite.core.backends import create_available_extractor

    extractor = await create_available_extractor(AppSettings())
    result = await extractor.extract_intent("add contact Alice")
    await extractor.close()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import IntentExtractor

if TYPE_CHECKING:
    from ...config import AppSettings
    from ..intent import IntentEngine

logger = logging.getLogger(__name__)

# Order in which providers are tried when the configured one is unusable.
# The rule engine is always available, so it ends every search.
FALLBACK_ORDER = ("openai", "ollama", "rules")


# Exceptions
class ExtractorError(Exception):
    """Base exception for extractor errors."""

    pass


class ExtractorUnavailableError(ExtractorError):
    """The extractor's backing service cannot be reached."""

    pass


def create_engine_from_settings(settings: "AppSettings") -> "IntentEngine":
    """Build the rule engine for the configured intent file.

    When ``fallback_to_default`` is set, a configuration that fails to load
    is logged and the built-in default is used instead.

    Raises:
        ConfigError: If the file is invalid and fallback is disabled
    """
    from ..intent import ConfigError, IntentEngine

    path = settings.intent_config_path
    if path is None:
        return IntentEngine()

    try:
        return IntentEngine.from_path(path)
    except ConfigError as e:
        if not settings.fallback_to_default:
            raise
        logger.error(f"Failed to load intent config {path}: {e}; using built-in default")
        return IntentEngine()


def create_extractor(
    settings: "AppSettings",
    engine: "IntentEngine | None" = None,
    provider: str | None = None,
) -> IntentExtractor:
    """Create the extractor selected by settings.

    Uses lazy imports so httpx is only loaded for remote providers.

    Args:
        settings: Application settings
        engine: Engine to share (built from settings when None)
        provider: Provider name overriding ``settings.provider``

    Returns:
        Configured IntentExtractor

    Raises:
        ValueError: If the provider is unknown
        ConfigError: If the intent configuration cannot be used
        ExtractorUnavailableError: If the provider lacks required settings
    """
    provider = (provider or settings.provider).lower()
    if provider not in FALLBACK_ORDER:
        raise ValueError(f"Unknown provider: {provider}")

    if engine is None:
        engine = create_engine_from_settings(settings)

    if provider == "rules":
        from .rules import RuleBasedExtractor

        return RuleBasedExtractor(engine)

    elif provider == "ollama":
        from .ollama import OllamaExtractor

        return OllamaExtractor(
            engine,
            model=settings.model,
            endpoint=settings.ollama_endpoint,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout,
        )

    else:
        from .openai import OpenAIExtractor

        return OpenAIExtractor(
            engine,
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            endpoint=settings.openai_endpoint,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout,
        )


async def create_available_extractor(settings: "AppSettings") -> IntentExtractor:
    """Create the configured extractor, falling back to one that is available.

    The configured provider is tried first. If it cannot be created or its
    service does not respond, the providers in FALLBACK_ORDER are tried in
    turn, ending with the rule engine.

    Args:
        settings: Application settings

    Returns:
        An extractor whose is_available() returned True

    Raises:
        ValueError: If the configured provider is unknown
        ConfigError: If the intent configuration cannot be used
    """
    configured = settings.provider.lower()
    if configured not in FALLBACK_ORDER:
        raise ValueError(f"Unknown provider: {settings.provider}")

    engine = create_engine_from_settings(settings)
    candidates = [configured] + [p for p in FALLBACK_ORDER if p != configured]

    for provider in candidates:
        try:
            extractor = create_extractor(settings, engine=engine, provider=provider)
        except ExtractorError as e:
            logger.warning(f"Cannot create {provider} extractor: {e}")
            continue

        if await extractor.is_available():
            if provider != configured:
                logger.warning(f"Provider {configured} unavailable; using {extractor.name}")
            return extractor

        logger.info(f"Provider {provider} is not available")
        await extractor.close()

    # Unreachable while the rule engine reports itself available
    raise ExtractorUnavailableError("No intent extractor is available")


__all__ = [
    # Base class
    "IntentExtractor",
    # Extractors (lazy imported)
    "RuleBasedExtractor",
    "OllamaExtractor",
    "OpenAIExtractor",
    # Factories
    "FALLBACK_ORDER",
    "create_extractor",
    "create_available_extractor",
    "create_engine_from_settings",
    # Exceptions
    "ExtractorError",
    "ExtractorUnavailableError",
]


def __getattr__(name: str):
    """Lazy import extractors to avoid loading unused dependencies."""
    if name == "RuleBasedExtractor":
        from .rules import RuleBasedExtractor
        return RuleBasedExtractor
    if name == "OllamaExtractor":
        from .ollama import OllamaExtractor
        return OllamaExtractor
    if name == "OpenAIExtractor":
        from .openai import OpenAIExtractor
        return OpenAIExtractor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
