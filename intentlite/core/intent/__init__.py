"""Configurable rule-based intent extraction for intentlite.

A domain configuration (intents, entities, synonyms, thresholds) is
validated and compiled once; each call then normalizes the text, scores
every intent, extracts entities from the original text and reports which
required fields are still missing.

Example usage:
    ```python
    from intentlite.core.intent import IntentEngine

    engine = IntentEngine()  # built-in personal-assistant domain

    result = engine.extract_intent("create a new contact named bob")
    assert result.task == "CREATE_CONTACT"
    assert result.variables["name"] == "bob"

    result = engine.extract_intent("create a new contact")
    if not result.is_complete:
        print(result.follow_up)
    ```
"""

from .classifier import Classification, classify, score_intent
from .completion import (
    CompletionStatus,
    check_completion,
    follow_up_question,
    intent_noun,
)
from .entities import EntityExtractor, extract_entities
from .errors import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    PatternCompileError,
)
from .parser import MAX_INPUT_LENGTH, IntentEngine, create_engine
from .patterns import (
    DEFAULT_STOP_WORDS,
    CompiledEntity,
    CompiledIntent,
    CompiledMatchers,
    compile_config,
    normalize_text,
    tokenize,
)
from .schema import (
    EntityDefinition,
    IntentConfig,
    IntentDefinition,
    config_from_mapping,
    default_config,
    load_config,
)
from .taxonomy import (
    UNKNOWN_INTENT,
    ExtractionResult,
    IntentConfidence,
    ScoringWeights,
)

__all__ = [
    # Engine
    "IntentEngine",
    "create_engine",
    "MAX_INPUT_LENGTH",
    # Configuration
    "IntentConfig",
    "IntentDefinition",
    "EntityDefinition",
    "load_config",
    "config_from_mapping",
    "default_config",
    # Errors
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "PatternCompileError",
    # Compilation and normalization
    "CompiledMatchers",
    "CompiledIntent",
    "CompiledEntity",
    "compile_config",
    "normalize_text",
    "tokenize",
    "DEFAULT_STOP_WORDS",
    # Classification
    "Classification",
    "classify",
    "score_intent",
    "ScoringWeights",
    "IntentConfidence",
    "UNKNOWN_INTENT",
    # Entities
    "EntityExtractor",
    "extract_entities",
    # Completion
    "CompletionStatus",
    "check_completion",
    "follow_up_question",
    "intent_noun",
    # Results
    "ExtractionResult",
]
