"""Entity extraction for intentlite.

Entities are extracted from the original (un-normalized) text, since
capitalization and quotes carry meaning here. Each configured entity runs
a chain of strategies and stops at the first one that yields a value:

1. Quoted span (name/title): the first double-quoted span, verbatim
2. Regex: configured patterns in order; the first capturing group wins
3. Keyword-anchored: the token(s) after an anchor keyword, accepted by a
   per-type policy (email needs "@" and ".", phone needs digits, ...)
4. Positional (name): the word right after a subject noun ("contact bob")

Entities with no successful strategy are left out of the result.
"""

from __future__ import annotations

import re
from typing import Callable, Iterator

from .patterns import CompiledEntity, CompiledMatchers

# Double-quoted span, straight or curly quotes
QUOTED_SPAN = re.compile(r'"([^"]+)"|“([^”]+)”')

DATE_WORDS: frozenset[str] = frozenset({"today", "tomorrow", "yesterday"})

# Words that end a greedily collected title
TITLE_BOUNDARY_WORDS: frozenset[str] = DATE_WORDS | {
    "at",
    "with",
    "email",
    "phone",
    "on",
    "in",
    "to",
}

TIME_ANCHORS: tuple[str, ...] = ("at",)
LOCATION_ANCHORS: tuple[str, ...] = ("in", "at")
MERIDIEM_WORDS: frozenset[str] = frozenset({"am", "pm", "a.m.", "p.m."})

# Nouns whose next word is taken as a name ("find contact alice")
SUBJECT_NOUNS: frozenset[str] = frozenset(
    {"contact", "person", "user", "customer", "client", "friend", "colleague"}
)

# Never a name, even when capitalized
COMMAND_WORDS: frozenset[str] = frozenset(
    {
        "contact", "contacts", "person", "email", "phone", "name", "number",
        "address", "details", "info", "information",
        "create", "add", "new", "find", "search", "look", "get", "show",
        "update", "delete", "remove", "modify", "change", "edit", "save", "store",
        "within", "without", "named", "called",
    }
)  # fmt: skip

# Trimmed from candidate values
VALUE_TRIM = ".,!?;:"

# Trimmed from tokens before comparing against anchors/word lists
TOKEN_TRIM = VALUE_TRIM + "\"'()[]{}“”"

# Words skipped between an anchor and a name ("name is Bob")
NAME_FILLERS: frozenset[str] = frozenset({"is", "was", "="})


def _clean(token: str) -> str:
    return token.strip(TOKEN_TRIM)


def _ends_clause(token: str) -> bool:
    return bool(token) and token[-1] in VALUE_TRIM


class EntityExtractor:
    """Extract configured entities from natural language text.

    The extractor only reads the compiled configuration, so one instance
    can serve concurrent calls.
    """

    def __init__(self, matchers: CompiledMatchers) -> None:
        """Initialize the extractor.

        Args:
            matchers: Compiled configuration providing entity patterns,
                anchor keywords and stop words
        """
        self.matchers = matchers
        self._policies: dict[str, Callable[[list[str], CompiledEntity], str | None]] = {
            "name": self._anchored_name,
            "title": self._anchored_title,
            "email": self._anchored_email,
            "phone": self._anchored_phone,
            "date": self._date_word,
            "time": self._anchored_time,
            "location": self._anchored_location,
        }

    def extract(self, text: str) -> dict[str, str]:
        """Extract all configured entities from text.

        Args:
            text: Original user input (not normalized)

        Returns:
            Mapping of entity key to extracted value
        """
        entities: dict[str, str] = {}
        words = text.split()

        for entity in self.matchers.entities:
            value = self._extract_one(text, words, entity)
            if value:
                entities[entity.key] = value

        return entities

    def _extract_one(self, text: str, words: list[str], entity: CompiledEntity) -> str | None:
        # A quoted span outranks every pattern, configured regexes included
        if entity.type in ("name", "title"):
            value = self._quoted_span(text)
            if value:
                return value

        value = self._by_regex(text, entity)
        if value:
            return value

        policy = self._policies.get(entity.type, self._anchored_generic)
        value = policy(words, entity)
        if value:
            return value

        if entity.type == "name":
            return self._after_subject_noun(words)

        return None

    # --- Strategy: quoted text ---

    def _quoted_span(self, text: str) -> str | None:
        for match in QUOTED_SPAN.finditer(text):
            value = match.group(1) or match.group(2)
            if value and value.strip():
                return value
        return None

    # --- Strategy: regex ---

    def _by_regex(self, text: str, entity: CompiledEntity) -> str | None:
        for regex in entity.regexes:
            if regex.groups == 0:
                continue
            match = regex.search(text)
            if match and match.group(1):
                value = match.group(1).strip()
                if value:
                    return value
        return None

    # --- Strategy: keyword-anchored ---

    def _anchor_positions(self, words: list[str], anchors: tuple[str, ...]) -> Iterator[int]:
        """Yield the index of the word following each anchor occurrence."""
        lowered = [_clean(word).lower() for word in words]
        anchor_parts = [anchor.split() for anchor in anchors if anchor.strip()]
        for i in range(len(lowered)):
            for parts in anchor_parts:
                end = i + len(parts)
                if lowered[i:end] == parts and end < len(words):
                    yield end
                    break

    def _capitalized_run(self, words: list[str], start: int) -> str | None:
        """Join capitalized, non-stop words starting at ``start``."""
        collected: list[str] = []
        for word in words[start:]:
            cleaned = _clean(word)
            if not cleaned or not cleaned[0].isupper() or self.matchers.is_stop_word(cleaned):
                break
            if collected and cleaned.lower() in COMMAND_WORDS:
                break
            collected.append(cleaned)
            if _ends_clause(word):
                break
        return " ".join(collected) or None

    def _anchored_name(self, words: list[str], entity: CompiledEntity) -> str | None:
        for start in self._anchor_positions(words, entity.keywords):
            while start < len(words) and _clean(words[start]).lower() in NAME_FILLERS:
                start += 1
            if start >= len(words):
                continue
            value = self._capitalized_run(words, start)
            if value and value.lower() not in COMMAND_WORDS:
                return value
        return None

    def _anchored_title(self, words: list[str], entity: CompiledEntity) -> str | None:
        for start in self._anchor_positions(words, entity.keywords):
            collected: list[str] = []
            for word in words[start:]:
                cleaned = _clean(word)
                lowered = cleaned.lower()
                if (
                    not cleaned
                    or self.matchers.is_stop_word(lowered)
                    or lowered in TITLE_BOUNDARY_WORDS
                ):
                    break
                collected.append(cleaned)
                if _ends_clause(word):
                    break
            if collected:
                return " ".join(collected)
        return None

    def _anchored_email(self, words: list[str], entity: CompiledEntity) -> str | None:
        for start in self._anchor_positions(words, entity.keywords):
            candidate = words[start].strip(VALUE_TRIM)
            if "@" in candidate and "." in candidate:
                return candidate
        return None

    def _anchored_phone(self, words: list[str], entity: CompiledEntity) -> str | None:
        for start in self._anchor_positions(words, entity.keywords):
            candidate = words[start].strip(VALUE_TRIM)
            if not any(ch.isdigit() for ch in candidate):
                continue
            if "-" in candidate or "(" in candidate or ")" in candidate or len(candidate) >= 10:
                return candidate
        return None

    def _date_word(self, words: list[str], entity: CompiledEntity) -> str | None:
        # Date words anchor themselves
        for word in words:
            lowered = _clean(word).lower()
            if lowered in DATE_WORDS:
                return lowered
        return None

    def _anchored_time(self, words: list[str], entity: CompiledEntity) -> str | None:
        for start in self._anchor_positions(words, entity.keywords + TIME_ANCHORS):
            candidate = words[start].strip(VALUE_TRIM)
            if not any(ch.isdigit() for ch in candidate):
                continue
            following = _clean(words[start + 1]).lower() if start + 1 < len(words) else ""
            if following in MERIDIEM_WORDS and not _ends_clause(words[start]):
                candidate = f"{candidate} {following}"
            lowered = candidate.lower()
            if ":" in lowered or "am" in lowered or "pm" in lowered or "a.m" in lowered:
                return candidate
        return None

    def _anchored_location(self, words: list[str], entity: CompiledEntity) -> str | None:
        for start in self._anchor_positions(words, entity.keywords + LOCATION_ANCHORS):
            value = self._capitalized_run(words, start)
            if value:
                return value
        return None

    def _anchored_generic(self, words: list[str], entity: CompiledEntity) -> str | None:
        for start in self._anchor_positions(words, entity.keywords):
            candidate = words[start].strip(VALUE_TRIM)
            if candidate:
                return candidate
        return None

    # --- Strategy: positional ---

    def _after_subject_noun(self, words: list[str]) -> str | None:
        for i, word in enumerate(words[:-1]):
            if _clean(word).lower() not in SUBJECT_NOUNS:
                continue
            candidate = _clean(words[i + 1])
            lowered = candidate.lower()
            if (
                not candidate.isalpha()
                or self.matchers.is_stop_word(lowered)
                or lowered in COMMAND_WORDS
                or lowered in SUBJECT_NOUNS
            ):
                continue
            if candidate[0].isupper():
                return self._capitalized_run(words, i + 1)
            return candidate
        return None


def extract_entities(text: str, matchers: CompiledMatchers) -> dict[str, str]:
    """Extract entities from text with a one-off extractor.

    Args:
        text: Original user input
        matchers: Compiled configuration

    Returns:
        Mapping of entity key to extracted value
    """
    return EntityExtractor(matchers).extract(text)


__all__ = [
    "DATE_WORDS",
    "SUBJECT_NOUNS",
    "TITLE_BOUNDARY_WORDS",
    "EntityExtractor",
    "extract_entities",
]
