"""Abstract base class for intent extractors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..intent import ExtractionResult


class IntentExtractor(ABC):
    """Abstract base class for intent extraction backends.

    Every extractor turns one utterance into an ExtractionResult. The
    rule engine runs in-process; remote extractors call a model server and
    may raise ExtractorError / ExtractorUnavailableError.

    Lifecycle:
    1. Create the extractor
    2. Optionally check is_available()
    3. Call extract_intent() any number of times
    4. Call close() to release network resources (idempotent)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider name for logging and result tagging."""
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if this extractor can serve requests right now."""
        ...

    @abstractmethod
    async def extract_intent(self, text: str) -> "ExtractionResult":
        """Extract the intent and variables from text.

        Args:
            text: Raw user input

        Returns:
            ExtractionResult (task "UNKNOWN" when nothing matched)
        """
        ...

    async def close(self) -> None:
        """Release resources. Safe to call multiple times."""
        return None


__all__ = ["IntentExtractor"]
