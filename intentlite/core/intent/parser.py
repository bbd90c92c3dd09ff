"""Rule-based intent extraction engine for intentlite.

This module wires the pipeline together:
1. Normalize the raw text
2. Classify it against every configured intent
3. Extract entities from the original text
4. Check required fields and build follow-up prompts

The engine holds one immutable CompiledMatchers reference. ``reload``
compiles a complete replacement and swaps the reference, so calls already
running keep the snapshot they started with.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from .classifier import classify
from .completion import check_completion
from .entities import EntityExtractor
from .patterns import CompiledMatchers, compile_config, normalize_text
from .schema import IntentConfig, load_config
from .taxonomy import ExtractionResult

logger = logging.getLogger(__name__)

# Longer inputs are truncated before matching
MAX_INPUT_LENGTH = 10_000

ConfigSource = str | Path | Mapping[str, Any] | IntentConfig | None


class IntentEngine:
    """Configurable rule-based intent extractor.

    Attributes:
        source: Where the active configuration came from (for logging)
    """

    def __init__(self, config: ConfigSource = None) -> None:
        """Load, validate and compile a configuration.

        Args:
            config: Path to a JSON/YAML document, a parsed mapping, an
                IntentConfig, or None for the built-in default

        Raises:
            ConfigLoadError: If the source cannot be read or parsed
            ConfigValidationError: If the configuration is invalid
            PatternCompileError: If a regex fails to compile
        """
        self._matchers = self._build(config)
        self.source = self._describe(config)
        logger.info(
            f"Intent engine ready: domain '{self._matchers.config.domain}' from {self.source}"
        )

    @classmethod
    def from_path(cls, path: str | Path) -> "IntentEngine":
        """Create an engine from a JSON or YAML configuration file."""
        return cls(Path(path))

    @property
    def matchers(self) -> CompiledMatchers:
        """The compiled state new calls will use."""
        return self._matchers

    @property
    def config(self) -> IntentConfig:
        """The active configuration."""
        return self._matchers.config

    def extract_intent(self, text: str) -> ExtractionResult:
        """Extract the intent and variables from one utterance.

        Deterministic for a given text and configuration. Never raises for
        unmatched input; "UNKNOWN" is an ordinary result.

        Args:
            text: Raw user input

        Returns:
            ExtractionResult for the input
        """
        matchers = self._matchers

        if not text or not text.strip():
            return ExtractionResult.unknown()

        if len(text) > MAX_INPUT_LENGTH:
            logger.warning(f"Input truncated from {len(text)} to {MAX_INPUT_LENGTH} chars")
            text = text[:MAX_INPUT_LENGTH]

        classification = classify(normalize_text(text), matchers, raw_text=text)
        variables = EntityExtractor(matchers).extract(text)

        result = ExtractionResult(
            task=classification.intent,
            variables=variables,
            confidence=classification.score,
            scores=classification.scores,
        )

        if classification.is_unknown:
            logger.debug(f"No intent recognized (entities: {sorted(variables)})")
            return result

        definition = matchers.config.intents[classification.intent]
        status = check_completion(classification.intent, variables, definition)
        result.missing = status.missing
        result.follow_up = status.follow_ups
        result.is_complete = status.is_complete

        logger.debug(
            f"Extracted {result.task} ({result.confidence:.2f}) via {classification.matched}; "
            f"missing={result.missing}"
        )
        return result

    def reload(self, config: ConfigSource = None) -> None:
        """Replace the active configuration.

        The new configuration is fully compiled before the swap; on any
        error the previous configuration stays active and the error
        propagates.

        Args:
            config: Same forms as the constructor accepts
        """
        matchers = self._build(config)
        self._matchers = matchers
        self.source = self._describe(config)
        logger.info(
            f"Reloaded intent config '{matchers.config.domain}' from {self.source} "
            f"({len(matchers.intents)} intents)"
        )

    @staticmethod
    def _build(config: ConfigSource) -> CompiledMatchers:
        return compile_config(load_config(config))

    @staticmethod
    def _describe(config: ConfigSource) -> str:
        if config is None:
            return "built-in default"
        if isinstance(config, (str, Path)):
            return str(config)
        return f"<{type(config).__name__}>"


def create_engine(config: ConfigSource = None) -> IntentEngine:
    """Factory function to create an IntentEngine.

    Args:
        config: Configuration source (None for the built-in default)

    Returns:
        Ready IntentEngine
    """
    return IntentEngine(config)


__all__ = ["MAX_INPUT_LENGTH", "ConfigSource", "IntentEngine", "create_engine"]
