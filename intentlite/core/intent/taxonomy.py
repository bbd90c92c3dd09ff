"""Scoring constants and the extraction result record for intentlite.

The weights below are tuning constants, not derived from a model. Changing
any of them changes which intent wins for existing configurations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

UNKNOWN_INTENT = "UNKNOWN"


class ScoringWeights:
    """Signal weights for composite intent scoring.

    Each intent's composite score is the sum of:
    - REGEX (0.8): any configured regex matches
    - PHRASE (0.6): any configured phrase is a substring
    - KEYWORD (0.4) / SYNONYM (0.3): per keyword, divided by keyword count
    - OVERLAP (0.2): fraction of intent vocabulary present in the input
    - LENGTH_BONUS (0.1): raw input longer than LENGTH_BONUS_MIN_CHARS
    - PRIORITY (0.1): per priority point
    """

    REGEX = 0.8
    PHRASE = 0.6
    KEYWORD = 0.4
    SYNONYM = 0.3
    OVERLAP = 0.2
    LENGTH_BONUS = 0.1
    LENGTH_BONUS_MIN_CHARS = 20
    PRIORITY = 0.1


class IntentConfidence:
    """Confidence bounds.

    DEFAULT_THRESHOLD applies to intents without a configured threshold.
    """

    DEFAULT_THRESHOLD = 0.5
    MAX = 1.0
    MIN = 0.0


@dataclass
class ExtractionResult:
    """Result of intent extraction.

    Attributes:
        task: Winning intent identifier, or "UNKNOWN"
        variables: Extracted entity values by variable name
        confidence: Composite score clamped to [0.0, 1.0]
        missing: Required variables absent from ``variables``
        follow_up: Questions to ask for the missing variables
        is_complete: Whether every required variable is present
        source: Extractor that produced the result (rules, ollama, openai)
        scores: Composite score per intent before thresholding (diagnostics)
    """

    task: str
    variables: dict[str, str] = field(default_factory=dict)
    confidence: float = 0.0
    missing: list[str] = field(default_factory=list)
    follow_up: list[str] = field(default_factory=list)
    is_complete: bool = False
    source: str = "rules"
    scores: dict[str, float] = field(default_factory=dict)

    @classmethod
    def unknown(cls, source: str = "rules") -> "ExtractionResult":
        """Create an UNKNOWN result with no variables."""
        return cls(task=UNKNOWN_INTENT, source=source)

    @property
    def is_unknown(self) -> bool:
        """Check if no intent was recognized."""
        return self.task == UNKNOWN_INTENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire form (task/vars/confidence/...)."""
        return {
            "task": self.task,
            "vars": dict(self.variables),
            "confidence": self.confidence,
            "missing": list(self.missing),
            "follow_up": list(self.follow_up),
            "is_complete": self.is_complete,
        }


__all__ = [
    "UNKNOWN_INTENT",
    "ExtractionResult",
    "IntentConfidence",
    "ScoringWeights",
]
