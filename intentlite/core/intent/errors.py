"""Configuration errors for the intent engine.

All of these are fatal to engine construction. Classification and
extraction never raise once a configuration has compiled.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base exception for intent configuration errors."""

    pass


class ConfigLoadError(ConfigError):
    """Configuration source is unreadable or not valid JSON/YAML."""

    pass


class ConfigValidationError(ConfigError):
    """Configuration parsed but violates a schema invariant.

    Attributes:
        key: Offending intent/entity key, or None for document-level errors
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class PatternCompileError(ConfigError):
    """A declared regular expression failed to compile.

    Attributes:
        kind: "intent" or "entity"
        key: Identifier of the intent/entity that declared the pattern
        pattern: The pattern source that failed
    """

    def __init__(self, kind: str, key: str, pattern: str, reason: str) -> None:
        super().__init__(f"invalid regex for {kind} {key}: {pattern!r} ({reason})")
        self.kind = kind
        self.key = key
        self.pattern = pattern


__all__ = [
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "PatternCompileError",
]
