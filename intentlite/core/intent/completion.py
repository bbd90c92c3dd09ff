"""Completion tracking: missing required fields and follow-up prompts."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

from .schema import IntentDefinition

# Human-friendly nouns for well-known intent identifiers
INTENT_NOUNS: dict[str, str] = {
    "CREATE_CONTACT": "contact",
    "FIND_CONTACT": "contact",
    "UPDATE_CONTACT": "contact",
    "DELETE_CONTACT": "contact",
    "CreateContact": "contact",
    "FindContact": "contact",
    "UpdateContact": "contact",
    "DeleteContact": "contact",
    "CREATE_EVENT": "event",
    "CreateEvent": "event",
    "CREATE_TASK": "task",
    "CreateTask": "task",
    "CREATE_NOTE": "note",
    "CreateNote": "note",
    "WEATHER": "weather request",
    "GetWeather": "weather request",
}

# {noun} is replaced with the intent noun, {field} with the field name
FOLLOW_UP_TEMPLATES: dict[str, str] = {
    "title": "What should I call this {noun}?",
    "name": "What's the name?",
    "email": "What's the email address?",
    "phone": "What's the phone number?",
    "date": "When should this {noun} be scheduled?",
    "time": "What time should this {noun} be?",
    "duration": "How long should this {noun} last?",
    "location": "Where should this {noun} take place?",
    "description": "Can you provide more details about this {noun}?",
    "priority": "What priority should this {noun} have?",
}
DEFAULT_FOLLOW_UP = "What {field} should I use for this {noun}?"

_CAMEL_HUMP = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


@dataclass
class CompletionStatus:
    """Outcome of comparing extracted variables with an intent's requirements.

    Attributes:
        missing: Required variable names that are absent or empty
        follow_ups: One prompt per missing field, in the same order
        is_complete: True iff nothing is missing
    """

    missing: list[str] = field(default_factory=list)
    follow_ups: list[str] = field(default_factory=list)
    is_complete: bool = True


def intent_noun(intent_id: str) -> str:
    """Render an intent identifier as a noun for prompts.

    Known identifiers come from ``INTENT_NOUNS``; anything else is split on
    camel-case humps and underscores into lower-cased words
    ("ScheduleMeeting" -> "schedule meeting").
    """
    if intent_id in INTENT_NOUNS:
        return INTENT_NOUNS[intent_id]
    words = _CAMEL_HUMP.sub(" ", intent_id).replace("_", " ")
    return " ".join(words.lower().split())


def follow_up_question(intent_id: str, field_name: str, custom: tuple[str, ...] = ()) -> str:
    """Build the follow-up prompt for one missing field.

    A custom prompt that mentions the field name (case-insensitive) is
    used verbatim; otherwise the per-field template is rendered.

    Args:
        intent_id: Winning intent identifier
        field_name: Missing variable name
        custom: The intent's custom follow-up prompts

    Returns:
        Prompt text
    """
    needle = field_name.lower()
    for question in custom:
        if needle in question.lower():
            return question

    template = FOLLOW_UP_TEMPLATES.get(needle, DEFAULT_FOLLOW_UP)
    return template.format(noun=intent_noun(intent_id), field=field_name)


def check_completion(
    intent_id: str,
    variables: Mapping[str, object],
    definition: IntentDefinition,
) -> CompletionStatus:
    """Compare extracted variables against an intent's required fields.

    Args:
        intent_id: Winning intent identifier (never "UNKNOWN")
        variables: Extracted variables
        definition: The winning intent's definition

    Returns:
        CompletionStatus with missing fields and their prompts
    """
    missing = [name for name in definition.required if not variables.get(name)]
    follow_ups = [follow_up_question(intent_id, name, definition.follow_up) for name in missing]
    return CompletionStatus(missing=missing, follow_ups=follow_ups, is_complete=not missing)


__all__ = [
    "CompletionStatus",
    "check_completion",
    "follow_up_question",
    "intent_noun",
]
