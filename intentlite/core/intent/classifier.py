"""Composite-score intent classification for intentlite.

Every configured intent is scored against the normalized input as the sum
of independent signals (regex, phrase, keyword/synonym, word overlap,
length bonus, priority). The strictly highest total wins, and the winner
must clear its confidence threshold or the result is UNKNOWN.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .patterns import CompiledIntent, CompiledMatchers
from .taxonomy import UNKNOWN_INTENT, IntentConfidence, ScoringWeights

logger = logging.getLogger(__name__)


@dataclass
class Classification:
    """Result of intent classification.

    Attributes:
        intent: Winning intent identifier, or "UNKNOWN"
        score: Winning composite score clamped to [0.0, 1.0]
        scores: Unclamped composite score per intent, priority included
        matched: Signals that fired for the winning intent (for debugging)
    """

    intent: str
    score: float
    scores: dict[str, float] = field(default_factory=dict)
    matched: list[str] = field(default_factory=list)

    @property
    def is_unknown(self) -> bool:
        return self.intent == UNKNOWN_INTENT


def word_overlap(tokens: list[str], vocabulary: frozenset[str]) -> float:
    """Fraction of the intent vocabulary present in the input tokens."""
    if not vocabulary:
        return 0.0
    return len(vocabulary.intersection(tokens)) / len(vocabulary)


def score_intent(
    text: str,
    tokens: list[str],
    intent: CompiledIntent,
    matchers: CompiledMatchers,
    raw_length: int,
) -> tuple[float, list[str]]:
    """Compute the composite score for one intent, before priority.

    Args:
        text: Normalized input text
        tokens: Stop-word-filtered tokens of the input
        intent: Compiled intent to score
        matchers: Compiled state (for synonym lookups)
        raw_length: Length of the raw input text

    Returns:
        Tuple of (score, descriptions of the signals that fired)
    """
    score = 0.0
    matched: list[str] = []

    for regex in intent.regexes:
        if regex.search(text):
            score += ScoringWeights.REGEX
            matched.append(f"regex:{regex.pattern}")
            break

    for phrase in intent.phrases:
        if phrase in text:
            score += ScoringWeights.PHRASE
            matched.append(f"phrase:{phrase}")
            break

    # Divided by the configured keyword count, not the matched count
    keyword_score = 0.0
    for keyword, synonyms in zip(intent.keywords, intent.keyword_synonyms):
        if keyword in text:
            keyword_score += ScoringWeights.KEYWORD
            matched.append(f"keyword:{keyword}")
            continue
        for synonym in synonyms:
            if synonym in text:
                keyword_score += ScoringWeights.SYNONYM
                matched.append(f"synonym:{synonym}->{matchers.canonical(synonym)}")
                break
    if intent.keywords:
        score += keyword_score / len(intent.keywords)

    overlap = word_overlap(tokens, intent.vocabulary)
    if overlap:
        score += overlap * ScoringWeights.OVERLAP
        matched.append(f"overlap:{overlap:.2f}")

    if raw_length > ScoringWeights.LENGTH_BONUS_MIN_CHARS:
        score += ScoringWeights.LENGTH_BONUS

    return score, matched


def classify(
    text: str,
    matchers: CompiledMatchers,
    raw_text: str | None = None,
) -> Classification:
    """Select the best intent for normalized text.

    Ties keep the first declared intent, since the best candidate is only
    replaced on strict improvement. An intent must score above zero to be
    selected at all.

    Args:
        text: Normalized input text (see ``normalize_text``)
        matchers: Compiled configuration
        raw_text: Original input, used for the length bonus
            (defaults to ``text``)

    Returns:
        Classification with the winning intent and clamped score
    """
    raw_length = len(raw_text if raw_text is not None else text)
    tokens = matchers.tokenize(text)

    best_intent = UNKNOWN_INTENT
    best_score = 0.0
    best_matched: list[str] = []
    scores: dict[str, float] = {}

    for intent in matchers.intents:
        score, matched = score_intent(text, tokens, intent, matchers, raw_length)
        score += intent.priority * ScoringWeights.PRIORITY
        scores[intent.key] = score

        if score > best_score:
            best_score = score
            best_intent = intent.key
            best_matched = matched

    compiled = matchers.intent(best_intent)
    threshold = compiled.threshold if compiled else IntentConfidence.DEFAULT_THRESHOLD

    if best_score < threshold:
        logger.debug(
            f"Best intent {best_intent} scored {best_score:.3f} below threshold "
            f"{threshold:.2f}; reporting {UNKNOWN_INTENT}"
        )
        return Classification(intent=UNKNOWN_INTENT, score=0.0, scores=scores)

    return Classification(
        intent=best_intent,
        score=min(best_score, IntentConfidence.MAX),
        scores=scores,
        matched=best_matched,
    )


__all__ = ["Classification", "classify", "score_intent", "word_overlap"]
