"""Text normalization and pattern compilation for intentlite.

``compile_config`` turns a validated IntentConfig into ``CompiledMatchers``:
pre-compiled regexes, lower-cased keyword/phrase tables, per-keyword
synonym lists and the synonym reverse index. The result is immutable and
shared read-only by every extraction call.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .errors import PatternCompileError
from .schema import IntentConfig
from .taxonomy import IntentConfidence

logger = logging.getLogger(__name__)

DEFAULT_STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but",
        "in", "on", "at", "to", "for", "of",
        "with", "by", "from", "up", "about",
        "into", "through", "during", "before", "after",
        "above", "below", "between", "among",
        "is", "are", "was", "were", "be", "been",
        "have", "has", "had", "do", "does", "did",
        "will", "would", "could", "should", "may", "might",
    }
)  # fmt: skip

# Kept by the normalizer so emails and hyphenated tokens survive
PRESERVED_PUNCTUATION = frozenset("@._-")

# Entity types extracted before all others, independently of each other
PRIORITY_ENTITY_TYPES = ("name", "title")


# ============================================================================
# Normalization
# ============================================================================


def _is_stripped_punctuation(char: str) -> bool:
    return unicodedata.category(char).startswith("P") and char not in PRESERVED_PUNCTUATION


def normalize_text(text: str) -> str:
    """Canonicalize raw input for classification.

    Lower-cases, collapses whitespace, replaces punctuation (except
    ``@ . _ -``) with spaces and collapses whitespace again.

    Args:
        text: Raw user input

    Returns:
        Normalized text
    """
    normalized = " ".join(text.lower().split())
    normalized = "".join(" " if _is_stripped_punctuation(ch) else ch for ch in normalized)
    return " ".join(normalized.split())


def tokenize(text: str, stop_words: frozenset[str] = DEFAULT_STOP_WORDS) -> list[str]:
    """Split normalized text into tokens, dropping stop words."""
    return [word for word in normalize_text(text).split() if word not in stop_words]


# ============================================================================
# Compiled matcher state
# ============================================================================


@dataclass(frozen=True)
class CompiledIntent:
    """Query-time form of one IntentDefinition.

    Attributes:
        key: Intent identifier
        priority: Integer priority from the definition
        threshold: Resolved confidence threshold
        regexes: Compiled intent regexes (case-insensitive)
        phrases: Normalized literal phrases
        keywords: Normalized keywords
        keyword_synonyms: Normalized synonyms per keyword, aligned with keywords
        vocabulary: Keyword and phrase words used for overlap scoring
    """

    key: str
    priority: int
    threshold: float
    regexes: tuple[re.Pattern[str], ...]
    phrases: tuple[str, ...]
    keywords: tuple[str, ...]
    keyword_synonyms: tuple[tuple[str, ...], ...]
    vocabulary: frozenset[str]


@dataclass(frozen=True)
class CompiledEntity:
    """Query-time form of one EntityDefinition."""

    key: str
    type: str
    regexes: tuple[re.Pattern[str], ...]
    keywords: tuple[str, ...]


@dataclass(frozen=True)
class CompiledMatchers:
    """Immutable, pre-compiled matcher state for one IntentConfig.

    Rebuilt wholesale whenever the configuration changes; never patched.

    Attributes:
        config: The configuration this state was compiled from
        intents: Compiled intents in declaration order
        entities: Compiled entities, name/title types first
        synonym_index: Surface form -> canonical word
        stop_words: Stop words dropped by tokenization
    """

    config: IntentConfig
    intents: tuple[CompiledIntent, ...]
    entities: tuple[CompiledEntity, ...]
    synonym_index: Mapping[str, str]
    stop_words: frozenset[str] = DEFAULT_STOP_WORDS

    def intent(self, key: str) -> CompiledIntent | None:
        """Look up a compiled intent by identifier."""
        for compiled in self.intents:
            if compiled.key == key:
                return compiled
        return None

    def canonical(self, word: str) -> str:
        """Map a synonym surface form to its canonical word (or itself)."""
        lowered = word.lower()
        return self.synonym_index.get(lowered, lowered)

    def tokenize(self, text: str) -> list[str]:
        """Tokenize text with this configuration's stop words."""
        return tokenize(text, self.stop_words)

    def is_stop_word(self, word: str) -> bool:
        """Check if a word is a stop word (case-insensitive)."""
        return word.lower() in self.stop_words


def _compile_patterns(
    kind: str, key: str, patterns: tuple[str, ...], flags: int = 0
) -> tuple[re.Pattern[str], ...]:
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, flags))
        except re.error as e:
            raise PatternCompileError(kind, key, pattern, str(e)) from e
    return tuple(compiled)


def _normalized(words: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(n for n in (normalize_text(word) for word in words) if n)


def compile_config(config: IntentConfig) -> CompiledMatchers:
    """Compile an IntentConfig into immutable matcher state.

    Any regex failure aborts the whole compilation; partial state is never
    returned.

    Args:
        config: Validated configuration

    Returns:
        CompiledMatchers for the configuration

    Raises:
        PatternCompileError: If any intent or entity regex fails to compile
    """
    forward_synonyms: dict[str, tuple[str, ...]] = {
        normalize_text(canonical): _normalized(alternatives)
        for canonical, alternatives in config.synonyms.items()
    }

    # A surface form declared under several canonical words keeps the last one
    synonym_index: dict[str, str] = {}
    for canonical, alternatives in forward_synonyms.items():
        for alternative in alternatives:
            synonym_index[alternative] = canonical

    intents: list[CompiledIntent] = []
    for key, definition in config.intents.items():
        # Same normalization as the input text
        keywords = _normalized(definition.keywords)
        phrases = _normalized(definition.phrases)

        vocabulary = set(keywords)
        for phrase in phrases:
            vocabulary.update(phrase.split())

        intents.append(
            CompiledIntent(
                key=key,
                priority=definition.priority,
                threshold=config.threshold_for(key, IntentConfidence.DEFAULT_THRESHOLD),
                regexes=_compile_patterns("intent", key, definition.regex, re.IGNORECASE),
                phrases=phrases,
                keywords=keywords,
                keyword_synonyms=tuple(forward_synonyms.get(k, ()) for k in keywords),
                vocabulary=frozenset(vocabulary),
            )
        )

    entities: list[CompiledEntity] = []
    for key, definition in config.entities.items():
        regexes = _compile_patterns("entity", key, definition.regex)
        for regex in regexes:
            if regex.groups == 0:
                logger.warning(
                    f"Entity {key} regex {regex.pattern!r} has no capturing group and "
                    "will never extract a value"
                )
        entities.append(
            CompiledEntity(
                key=key,
                type=(definition.type or key).lower(),
                regexes=regexes,
                keywords=tuple(keyword.lower() for keyword in definition.keywords),
            )
        )

    # name and title first; list.sort is stable so declaration order holds within groups
    entities.sort(key=lambda e: 0 if e.type in PRIORITY_ENTITY_TYPES else 1)

    logger.debug(
        f"Compiled config '{config.domain}': {len(intents)} intents, "
        f"{len(entities)} entities, {len(synonym_index)} synonyms"
    )

    return CompiledMatchers(
        config=config,
        intents=tuple(intents),
        entities=tuple(entities),
        synonym_index=MappingProxyType(synonym_index),
    )


__all__ = [
    "DEFAULT_STOP_WORDS",
    "CompiledEntity",
    "CompiledIntent",
    "CompiledMatchers",
    "compile_config",
    "normalize_text",
    "tokenize",
]
