"""In-process rule-based extractor."""

from __future__ import annotations

from ..intent import ExtractionResult, IntentEngine
from .base import IntentExtractor


class RuleBasedExtractor(IntentExtractor):
    """Adapts IntentEngine to the IntentExtractor interface.

    Always available; runs synchronously inside the coroutine since a call
    never blocks on I/O.
    """

    def __init__(self, engine: IntentEngine | None = None) -> None:
        self.engine = engine if engine is not None else IntentEngine()

    @property
    def name(self) -> str:
        return "rules"

    async def is_available(self) -> bool:
        return True

    async def extract_intent(self, text: str) -> ExtractionResult:
        result = self.engine.extract_intent(text)
        result.source = self.name
        return result


__all__ = ["RuleBasedExtractor"]
