"""Declarative intent configuration for intentlite.

An intent configuration describes one domain (personal assistant, customer
support, ...) as a set of intents, entities, synonyms and per-intent
confidence thresholds. It is loaded once from JSON or YAML (or taken from
the built-in default), validated here, and then compiled into matchers by
``patterns.compile_config``.

Document layout::

    domain: personal_assistant
    version: 1.0.0
    intents:
      CREATE_CONTACT:
        description: Create a new contact
        keywords: [create, add, new, save]
        phrases: [create contact, add contact]
        regex: []
        priority: 2
        variables: [name, email, phone]
        required: [name]
        follow_up: ["What's the name of the new contact?"]
    entities:
      email:
        type: email
        regex: ['([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\\.[a-zA-Z]{2,})']
        keywords: [email, mail]
    synonyms:
      create: [add, new, save]
    confidence:
      CREATE_CONTACT: 0.7
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Mapping

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigLoadError, ConfigValidationError

logger = logging.getLogger(__name__)


def _none_to_empty(value: Any) -> Any:
    # YAML renders "keywords:" with no items as null
    return () if value is None else value


StrTuple = Annotated[tuple[str, ...], BeforeValidator(_none_to_empty)]


# ============================================================================
# Definitions
# ============================================================================


class IntentDefinition(BaseModel):
    """A named task the engine can recognize.

    Attributes:
        description: Human-readable description
        keywords: Primary keywords (substring matched)
        phrases: Literal phrases (substring matched)
        regex: Regular expressions searched against normalized text
        priority: Higher priority is preferred on near-ties
        variables: Variable names this intent can populate
        required: Subset of variables that must be present to act
        examples: Example utterances (informational only)
        follow_up: Custom follow-up prompts for missing fields
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    description: str = ""
    keywords: StrTuple = ()
    phrases: StrTuple = ()
    regex: StrTuple = ()
    priority: int = 0
    variables: StrTuple = ()
    required: StrTuple = ()
    examples: StrTuple = ()
    follow_up: StrTuple = ()

    def has_signals(self) -> bool:
        """Check that at least one matching signal is declared."""
        return bool(self.keywords or self.phrases or self.regex)


class EntityDefinition(BaseModel):
    """A named piece of data extracted from text.

    Attributes:
        type: Free-form type tag that selects the extraction policy
            (name, title, email, phone, date, time, location, ...)
        description: Human-readable description
        regex: Patterns whose first capturing group is the value
        keywords: Anchor keywords for proximity extraction
        examples: Example values (informational only)
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = ""
    description: str = ""
    regex: StrTuple = ()
    keywords: StrTuple = ()
    examples: StrTuple = ()


class IntentConfig(BaseModel):
    """Complete intent configuration for one domain.

    Instances are frozen; the engine compiles them once and never mutates
    them. Invariants are checked on construction and raise
    ``ConfigValidationError`` naming the offending key.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    domain: str = ""
    version: str = ""
    intents: dict[str, IntentDefinition] = Field(default_factory=dict)
    entities: dict[str, EntityDefinition] = Field(default_factory=dict)
    synonyms: dict[str, StrTuple] = Field(default_factory=dict)
    thresholds: dict[str, float] = Field(default_factory=dict, alias="confidence")

    @field_validator("intents", "entities", "synonyms", "thresholds", mode="before")
    @classmethod
    def _none_to_empty_mapping(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("domain", "version", mode="before")
    @classmethod
    def _scalar_to_str(cls, v: Any) -> Any:
        # YAML reads "version: 1.0" as a float
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def _check_invariants(self) -> "IntentConfig":
        if not self.domain.strip():
            raise ConfigValidationError("domain is required")
        if not self.intents:
            raise ConfigValidationError("at least one intent must be defined")

        for key, intent in self.intents.items():
            if not key.strip():
                raise ConfigValidationError("intent identifiers must be non-empty", key=key)
            if not intent.has_signals():
                raise ConfigValidationError(
                    f"intent {key}: must have at least keywords, phrases, or regex",
                    key=key,
                )
            undeclared = [name for name in intent.required if name not in intent.variables]
            if undeclared:
                raise ConfigValidationError(
                    f"intent {key}: required fields {undeclared} are not listed in variables",
                    key=key,
                )

        for key, threshold in self.thresholds.items():
            if not 0.0 <= threshold <= 1.0:
                raise ConfigValidationError(
                    f"confidence threshold for {key} must be within [0, 1], got {threshold}",
                    key=key,
                )

        return self

    def threshold_for(self, intent_id: str, default: float) -> float:
        """Get the confidence threshold for an intent, or ``default``."""
        return self.thresholds.get(intent_id, default)


# ============================================================================
# Built-in default
# ============================================================================

# Minimal personal-assistant domain: usable with no external configuration
DEFAULT_CONFIG_DATA: dict[str, Any] = {
    "domain": "personal_assistant",
    "version": "1.0.0",
    "intents": {
        "CREATE_CONTACT": {
            "description": "Create a new contact",
            "keywords": ["create", "add", "new", "save"],
            "phrases": ["create contact", "add contact", "new contact", "save contact"],
            "priority": 2,
            "variables": ["name", "email", "phone"],
            "required": ["name"],
            "examples": [
                "create a new contact named bob",
                "add contact alice with email alice@example.com",
            ],
            "follow_up": ["What's the name of the new contact?"],
        },
        "FIND_CONTACT": {
            "description": "Find or search for a contact",
            "keywords": ["find", "search", "look", "get"],
            "phrases": ["find contact", "search contact", "look up contact"],
            "priority": 1,
            "variables": ["name"],
            "required": ["name"],
            "examples": ["find contact bob", "search for alice"],
        },
    },
    "entities": {
        "name": {
            "type": "name",
            "description": "Person's name",
            "regex": [
                r"\b(?i:named|name\s+is|call(?:ed)?)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*|[a-z]+)"
            ],
            "keywords": ["named", "name", "called"],
        },
        "email": {
            "type": "email",
            "description": "Email address",
            "regex": [r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})"],
            "keywords": ["email", "e-mail", "mail"],
        },
        "phone": {
            "type": "phone",
            "description": "Phone number",
            "regex": [r"((?:\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4})"],
            "keywords": ["phone", "telephone", "mobile", "cell"],
        },
    },
    "synonyms": {
        "create": ["add", "new", "save", "store", "insert"],
        "find": ["search", "look", "locate", "get"],
        "update": ["change", "modify", "edit", "alter"],
        "delete": ["remove", "drop", "erase", "clear"],
    },
    "confidence": {
        "CREATE_CONTACT": 0.7,
        "FIND_CONTACT": 0.6,
    },
}


def default_config() -> IntentConfig:
    """Get the built-in personal-assistant configuration."""
    return IntentConfig.model_validate(DEFAULT_CONFIG_DATA)


# ============================================================================
# Loading
# ============================================================================


def _offending_key(error: ValidationError) -> str | None:
    """Pick the intent/entity key out of the first pydantic error location."""
    for detail in error.errors():
        loc = detail.get("loc", ())
        if len(loc) >= 2 and loc[0] in ("intents", "entities", "confidence", "thresholds"):
            return str(loc[1])
    return None


def config_from_mapping(data: Mapping[str, Any]) -> IntentConfig:
    """Validate a parsed document into an IntentConfig.

    Args:
        data: Parsed JSON/YAML document

    Returns:
        Validated IntentConfig

    Raises:
        ConfigLoadError: If the document is not a mapping
        ConfigValidationError: If the document violates the schema
    """
    if not isinstance(data, Mapping):
        raise ConfigLoadError(
            f"configuration must be a mapping at the top level, got {type(data).__name__}"
        )

    try:
        return IntentConfig.model_validate(dict(data))
    except ValidationError as e:
        key = _offending_key(e)
        first = e.errors()[0]
        where = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigValidationError(f"invalid config at {where}: {first.get('msg')}", key=key) from e


def _read_document(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            yaml = YAML(typ="safe")
            return yaml.load(f)
    except OSError as e:
        raise ConfigLoadError(f"failed to read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"failed to parse config file {path}: {e}") from e
    except YAMLError as e:
        raise ConfigLoadError(f"failed to parse config file {path}: {e}") from e


def load_config(source: str | Path | Mapping[str, Any] | IntentConfig | None = None) -> IntentConfig:
    """Load and validate an intent configuration.

    Args:
        source: Path to a ``.json``/``.yaml`` file, an already-parsed
            mapping, an IntentConfig (returned as-is), or None for the
            built-in default

    Returns:
        Validated IntentConfig

    Raises:
        ConfigLoadError: If the source cannot be read or parsed
        ConfigValidationError: If the configuration violates the schema
    """
    if source is None:
        return default_config()
    if isinstance(source, IntentConfig):
        return source
    if isinstance(source, Mapping):
        return config_from_mapping(source)

    path = Path(source).expanduser()
    data = _read_document(path)
    if data is None:
        raise ConfigLoadError(f"config file {path} is empty")

    config = config_from_mapping(data)
    logger.info(
        f"Loaded intent config '{config.domain}' v{config.version or '?'} from {path} "
        f"({len(config.intents)} intents, {len(config.entities)} entities)"
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_DATA",
    "EntityDefinition",
    "IntentConfig",
    "IntentDefinition",
    "config_from_mapping",
    "default_config",
    "load_config",
]
