"""Prompt and reply handling shared by the model-backed extractors.

The prompt lists the tasks and variables of the active domain
configuration. The model's reply is validated against the same
configuration: unknown task names become "UNKNOWN", and missing-field
detection and follow-up prompts come from the local completion tracker, so
every extractor reports completeness the same way.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from ..intent import (
    UNKNOWN_INTENT,
    ExtractionResult,
    IntentConfidence,
    IntentConfig,
    check_completion,
)
from . import ExtractorError

logger = logging.getLogger(__name__)

# Confidence assumed when the model omits one or returns garbage
DEFAULT_MODEL_CONFIDENCE = 0.5

SYSTEM_PROMPT = "You are an intent extraction assistant. Always respond with valid JSON only."

EXTRACTION_PROMPT = """\
You extract structured intents for a {domain} assistant.

Extract the task and variables from this text: "{text}"

KNOWN TASKS:
{tasks}

VARIABLES YOU MAY EXTRACT:
{entities}

If no task fits, use "UNKNOWN" as the task. Only include variables that
appear in the text.

Respond with valid JSON only:
{{
  "task": "TASK_NAME",
  "vars": {{"variable": "value"}},
  "confidence": 0.0-1.0
}}"""

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def build_prompt(text: str, config: IntentConfig) -> str:
    """Render the extraction prompt for a domain configuration.

    Args:
        text: User input
        config: Active configuration (tasks and variables listed from it)

    Returns:
        Prompt text
    """
    tasks = "\n".join(
        f"- {key}: {intent.description or key}" for key, intent in config.intents.items()
    )
    entities = "\n".join(
        f"- {key}: {entity.description or entity.type or key}"
        for key, entity in config.entities.items()
    )
    return EXTRACTION_PROMPT.format(
        domain=config.domain.replace("_", " "),
        text=text.replace('"', "'"),
        tasks=tasks,
        entities=entities or "- (none configured)",
    )


def parse_model_reply(reply: str) -> dict[str, Any]:
    """Pull the JSON object out of a model reply.

    Models often wrap JSON in prose or code fences; the outermost ``{...}``
    block is parsed.

    Raises:
        ExtractorError: If no JSON object can be parsed
    """
    match = _JSON_OBJECT.search(reply)
    candidate = match.group() if match else reply
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ExtractorError(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractorError(f"Model reply is not a JSON object: {type(data).__name__}")
    return data


def reply_to_result(reply: dict[str, Any], config: IntentConfig, source: str) -> ExtractionResult:
    """Turn a parsed model reply into an ExtractionResult.

    Args:
        reply: Parsed JSON object from the model
        config: Active configuration the task is checked against
        source: Extractor name recorded on the result

    Returns:
        ExtractionResult with completion fields filled in locally
    """
    task = str(reply.get("task") or UNKNOWN_INTENT).strip()
    if task not in config.intents:
        if task != UNKNOWN_INTENT:
            logger.warning(f"Model returned unknown task {task!r}; reporting {UNKNOWN_INTENT}")
        task = UNKNOWN_INTENT

    raw_vars = reply.get("vars") or {}
    variables: dict[str, str] = {}
    if isinstance(raw_vars, dict):
        for key, value in raw_vars.items():
            if value is None or key == "confidence":
                continue
            value = str(value).strip()
            if value:
                variables[str(key)] = value

    if task == UNKNOWN_INTENT:
        return ExtractionResult(task=task, variables=variables, source=source)

    try:
        raw_conf = reply.get("confidence", DEFAULT_MODEL_CONFIDENCE)
        confidence = max(IntentConfidence.MIN, min(IntentConfidence.MAX, float(raw_conf)))
    except (ValueError, TypeError):
        confidence = DEFAULT_MODEL_CONFIDENCE

    status = check_completion(task, variables, config.intents[task])
    return ExtractionResult(
        task=task,
        variables=variables,
        confidence=confidence,
        missing=status.missing,
        follow_up=status.follow_ups,
        is_complete=status.is_complete,
        source=source,
    )


__all__ = [
    "DEFAULT_MODEL_CONFIDENCE",
    "EXTRACTION_PROMPT",
    "SYSTEM_PROMPT",
    "build_prompt",
    "parse_model_reply",
    "reply_to_result",
]
