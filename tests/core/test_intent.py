"""Comprehensive tests for the intentlite intent engine.

Tests cover:
- Text normalization and tokenization
- Pattern compilation (synonym index, entity order, bad regexes)
- Intent classification (signals, priority, ties, thresholds)
- Completion tracking and follow-up prompts
- End-to-end extraction scenarios, reload and idempotence
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest

from intentlite.core.intent import (
    MAX_INPUT_LENGTH,
    UNKNOWN_INTENT,
    CompiledMatchers,
    ConfigValidationError,
    IntentConfig,
    IntentEngine,
    PatternCompileError,
    ScoringWeights,
    check_completion,
    classify,
    compile_config,
    create_engine,
    default_config,
    follow_up_question,
    intent_noun,
    normalize_text,
    score_intent,
    tokenize,
)

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "personal_assistant.yaml"


def make_config(intents: dict[str, Any], **extra: Any) -> IntentConfig:
    """Build a small IntentConfig for a test."""
    return IntentConfig.model_validate({"domain": "test", "intents": intents, **extra})


@pytest.fixture
def engine() -> IntentEngine:
    return IntentEngine()


@pytest.fixture
def matchers() -> CompiledMatchers:
    return compile_config(default_config())


# ============================================================================
# Normalization Tests
# ============================================================================


class TestNormalizeText:
    """Tests for normalize_text and tokenize."""

    def test_lowercases_and_collapses_whitespace(self) -> None:
        assert normalize_text("  Hello \t  WORLD\n foo ") == "hello world foo"

    def test_punctuation_replaced_with_space(self) -> None:
        assert normalize_text("Hello,world!  How?") == "hello world how"

    def test_email_characters_preserved(self) -> None:
        assert normalize_text("Email: Bob@Example.COM") == "email bob@example.com"

    def test_hyphen_and_underscore_preserved(self) -> None:
        assert normalize_text("well-known snake_case") == "well-known snake_case"

    def test_apostrophe_splits_word(self) -> None:
        assert normalize_text("what's up") == "what s up"

    def test_parentheses_removed_from_phone(self) -> None:
        assert normalize_text("(555) 123-4567") == "555 123-4567"

    def test_empty(self) -> None:
        assert normalize_text("   ") == ""

    def test_tokenize_drops_stop_words(self) -> None:
        assert tokenize("The cat is on the mat") == ["cat", "mat"]

    def test_tokenize_custom_stop_words(self) -> None:
        assert tokenize("find the cat", frozenset({"cat"})) == ["find", "the"]


# ============================================================================
# Pattern Compiler Tests
# ============================================================================


class TestCompileConfig:
    """Tests for compile_config."""

    def test_default_config_compiles(self, matchers: CompiledMatchers) -> None:
        assert [i.key for i in matchers.intents] == ["CREATE_CONTACT", "FIND_CONTACT"]
        assert [e.key for e in matchers.entities] == ["name", "email", "phone"]

    def test_synonym_reverse_index(self, matchers: CompiledMatchers) -> None:
        assert matchers.canonical("add") == "create"
        assert matchers.canonical("Locate") == "find"
        assert matchers.canonical("unrelated") == "unrelated"

    def test_synonym_last_write_wins(self) -> None:
        config = make_config(
            {"A": {"keywords": ["a"]}},
            synonyms={"first": ["shared"], "second": ["shared"]},
        )
        assert compile_config(config).canonical("shared") == "second"

    def test_synonym_index_is_immutable(self, matchers: CompiledMatchers) -> None:
        with pytest.raises(TypeError):
            matchers.synonym_index["add"] = "delete"  # type: ignore[index]

    def test_keyword_synonyms_aligned(self, matchers: CompiledMatchers) -> None:
        create = matchers.intent("CREATE_CONTACT")
        assert create is not None
        assert create.keywords[0] == "create"
        assert "add" in create.keyword_synonyms[0]
        # "add" has no synonym entry of its own
        assert create.keyword_synonyms[1] == ()

    def test_thresholds_resolved(self, matchers: CompiledMatchers) -> None:
        assert matchers.intent("CREATE_CONTACT").threshold == 0.7
        config = make_config({"A": {"keywords": ["a"]}})
        assert compile_config(config).intent("A").threshold == 0.5

    def test_phrases_normalized(self) -> None:
        config = make_config({"W": {"phrases": ["What's the Weather?"]}})
        assert compile_config(config).intent("W").phrases == ("what s the weather",)

    def test_vocabulary_from_keywords_and_phrases(self) -> None:
        config = make_config({"A": {"keywords": ["find"], "phrases": ["look up contact"]}})
        vocab = compile_config(config).intent("A").vocabulary
        assert vocab == frozenset({"find", "look", "up", "contact"})

    def test_name_and_title_entities_first(self) -> None:
        config = make_config(
            {"A": {"keywords": ["a"]}},
            entities={
                "email": {"type": "email"},
                "title": {"type": "title"},
                "phone": {"type": "phone"},
                "name": {"type": "name"},
            },
        )
        keys = [e.key for e in compile_config(config).entities]
        assert keys == ["title", "name", "email", "phone"]

    def test_entity_type_defaults_to_key(self) -> None:
        config = make_config({"A": {"keywords": ["a"]}}, entities={"Email": {}})
        assert compile_config(config).entities[0].type == "email"

    def test_bad_intent_regex(self) -> None:
        config = make_config({"BROKEN": {"regex": ["(unclosed"]}})
        with pytest.raises(PatternCompileError) as exc_info:
            compile_config(config)
        assert exc_info.value.kind == "intent"
        assert exc_info.value.key == "BROKEN"
        assert exc_info.value.pattern == "(unclosed"
        assert "BROKEN" in str(exc_info.value)

    def test_bad_entity_regex(self) -> None:
        config = make_config(
            {"A": {"keywords": ["a"]}},
            entities={"code": {"regex": ["[a-z"]}},
        )
        with pytest.raises(PatternCompileError) as exc_info:
            compile_config(config)
        assert exc_info.value.kind == "entity"
        assert exc_info.value.key == "code"

    def test_entity_regex_without_group_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        config = make_config(
            {"A": {"keywords": ["a"]}},
            entities={"code": {"regex": [r"\d+"]}},
        )
        with caplog.at_level(logging.WARNING):
            compile_config(config)
        assert "no capturing group" in caplog.text


# ============================================================================
# Classifier Tests
# ============================================================================


class TestClassifier:
    """Tests for composite intent scoring."""

    def test_regex_signal_counted_once(self) -> None:
        config = make_config({"A": {"regex": ["^remind", "me$"]}})
        m = compile_config(config)
        score, matched = score_intent("remind me", ["remind", "me"], m.intents[0], m, 9)
        assert score == pytest.approx(ScoringWeights.REGEX)
        assert matched == ["regex:^remind"]

    def test_intent_regex_is_case_insensitive(self) -> None:
        config = make_config({"A": {"regex": ["^REMIND"]}})
        m = compile_config(config)
        score, _ = score_intent("remind me", [], m.intents[0], m, 9)
        assert score == pytest.approx(ScoringWeights.REGEX)

    def test_phrase_signal_counted_once(self) -> None:
        config = make_config({"A": {"phrases": ["big", "dog"]}})
        m = compile_config(config)
        # overlap: 2 of 2 vocabulary words
        score, _ = score_intent("big dog", ["big", "dog"], m.intents[0], m, 7)
        assert score == pytest.approx(0.6 + 0.2)

    def test_keyword_score_divided_by_configured_count(self) -> None:
        config = make_config({"A": {"keywords": ["alpha", "beta", "gamma", "delta"]}})
        m = compile_config(config)
        score, _ = score_intent("zzz alpha", [], m.intents[0], m, 9)
        assert score == pytest.approx(0.4 / 4)

    def test_synonym_signal(self) -> None:
        config = make_config({"A": {"keywords": ["create"]}}, synonyms={"create": ["add"]})
        m = compile_config(config)
        score, matched = score_intent("add item", ["add", "item"], m.intents[0], m, 8)
        assert score == pytest.approx(ScoringWeights.SYNONYM)
        assert "synonym:add->create" in matched

    def test_keyword_preferred_over_synonym(self) -> None:
        config = make_config({"A": {"keywords": ["create"]}}, synonyms={"create": ["add"]})
        m = compile_config(config)
        score, _ = score_intent("create add", [], m.intents[0], m, 10)
        assert score == pytest.approx(ScoringWeights.KEYWORD)

    def test_length_bonus_strictly_over_twenty(self) -> None:
        config = make_config({"A": {"keywords": ["zzz"]}})
        m = compile_config(config)
        short, _ = score_intent("x", [], m.intents[0], m, 20)
        long, _ = score_intent("x", [], m.intents[0], m, 21)
        assert short == 0.0
        assert long == pytest.approx(ScoringWeights.LENGTH_BONUS)

    def test_priority_breaks_near_tie(self) -> None:
        config = make_config(
            {
                "LOW": {"keywords": ["go"], "priority": 0},
                "HIGH": {"keywords": ["go"], "priority": 3},
            }
        )
        result = classify("go", compile_config(config))
        assert result.intent == "HIGH"

    def test_exact_tie_keeps_first_declared(self) -> None:
        config = make_config({"FIRST": {"keywords": ["go"]}, "SECOND": {"keywords": ["go"]}})
        result = classify("go", compile_config(config))
        assert result.intent == "FIRST"
        assert result.scores["FIRST"] == result.scores["SECOND"]

    def test_below_threshold_is_unknown(self) -> None:
        config = make_config({"A": {"keywords": ["go"]}}, confidence={"A": 0.9})
        result = classify("go", compile_config(config))
        assert result.intent == UNKNOWN_INTENT
        assert result.score == 0.0
        assert result.is_unknown

    def test_threshold_applies_to_winner(self) -> None:
        config = make_config({"A": {"keywords": ["go"]}}, confidence={"A": 0.4})
        result = classify("go", compile_config(config))
        assert result.intent == "A"
        assert result.score == pytest.approx(0.4 + 0.2)

    def test_score_clamped_to_one(self) -> None:
        config = make_config({"A": {"keywords": ["go"], "regex": ["go"], "priority": 5}})
        result = classify("go go go", compile_config(config), raw_text="go go go, really, go go")
        assert result.score == 1.0
        assert result.scores["A"] > 1.0

    def test_nothing_scores_above_zero(self) -> None:
        config = make_config({"A": {"keywords": ["go"]}}, confidence={"A": 0.0})
        result = classify("xyz", compile_config(config))
        assert result.intent == UNKNOWN_INTENT

    @pytest.mark.parametrize(
        "text",
        ["", "xyz", "create create create contact named bob", "find", "a" * 200],
    )
    def test_result_always_in_range(self, matchers: CompiledMatchers, text: str) -> None:
        result = classify(normalize_text(text), matchers, raw_text=text)
        assert 0.0 <= result.score <= 1.0
        assert result.intent in {UNKNOWN_INTENT, "CREATE_CONTACT", "FIND_CONTACT"}


# ============================================================================
# Completion Tests
# ============================================================================


class TestCompletion:
    """Tests for check_completion and follow-up prompts."""

    def test_intent_noun_known(self) -> None:
        assert intent_noun("CREATE_EVENT") == "event"
        assert intent_noun("CreateContact") == "contact"

    def test_intent_noun_camel_case_fallback(self) -> None:
        assert intent_noun("ScheduleMeeting") == "schedule meeting"

    def test_intent_noun_underscore_fallback(self) -> None:
        assert intent_noun("BOOK_FLIGHT") == "book flight"

    def test_custom_prompt_used_verbatim(self) -> None:
        custom = ("Which EMAIL should I send it to?",)
        assert follow_up_question("SEND", "email", custom) == "Which EMAIL should I send it to?"

    def test_custom_prompt_must_mention_field(self) -> None:
        custom = ("What's the email address?",)
        assert follow_up_question("CREATE_CONTACT", "name", custom) == "What's the name?"

    @pytest.mark.parametrize(
        "field_name,expected",
        [
            ("title", "What should I call this event?"),
            ("name", "What's the name?"),
            ("email", "What's the email address?"),
            ("phone", "What's the phone number?"),
            ("date", "When should this event be scheduled?"),
            ("time", "What time should this event be?"),
            ("duration", "How long should this event last?"),
            ("location", "Where should this event take place?"),
            ("description", "Can you provide more details about this event?"),
            ("priority", "What priority should this event have?"),
            ("attendees", "What attendees should I use for this event?"),
        ],
    )
    def test_template_table(self, field_name: str, expected: str) -> None:
        assert follow_up_question("CREATE_EVENT", field_name) == expected

    def test_missing_and_empty_fields(self) -> None:
        definition = default_config().intents["CREATE_CONTACT"]
        status = check_completion("CREATE_CONTACT", {"name": ""}, definition)
        assert status.missing == ["name"]
        assert status.follow_ups == ["What's the name of the new contact?"]
        assert status.is_complete is False

    def test_complete(self) -> None:
        definition = default_config().intents["CREATE_CONTACT"]
        status = check_completion("CREATE_CONTACT", {"name": "bob"}, definition)
        assert status.missing == []
        assert status.follow_ups == []
        assert status.is_complete is True

    def test_missing_preserves_required_order(self) -> None:
        config = make_config(
            {"E": {"keywords": ["e"], "variables": ["a", "b", "c"], "required": ["c", "a"]}}
        )
        status = check_completion("E", {}, config.intents["E"])
        assert status.missing == ["c", "a"]
        assert len(status.follow_ups) == 2


# ============================================================================
# Engine Scenario Tests
# ============================================================================


class TestIntentEngine:
    """End-to-end tests against the built-in configuration."""

    def test_create_contact_named_bob(self, engine: IntentEngine) -> None:
        result = engine.extract_intent("create a new contact named bob")
        assert result.task == "CREATE_CONTACT"
        assert result.variables["name"] == "bob"
        assert result.is_complete is True
        assert result.missing == []
        assert 0.0 < result.confidence <= 1.0

    def test_find_contact_alice(self, engine: IntentEngine) -> None:
        result = engine.extract_intent("find contact alice")
        assert result.task == "FIND_CONTACT"
        assert result.variables == {"name": "alice"}
        assert result.is_complete is True

    def test_no_match_is_unknown(self, engine: IntentEngine) -> None:
        result = engine.extract_intent("xyz zzz qqq")
        assert result.task == UNKNOWN_INTENT
        assert result.confidence == 0.0
        assert result.variables == {}
        assert result.missing == []
        assert result.follow_up == []
        assert result.is_complete is False

    def test_phone_and_email_extracted_together(self, engine: IntentEngine) -> None:
        result = engine.extract_intent(
            "add contact Alice with email alice@example.com and phone 555-123-4567"
        )
        assert result.task == "CREATE_CONTACT"
        assert result.variables["email"] == "alice@example.com"
        assert result.variables["phone"] == "555-123-4567"
        assert result.variables["name"] == "Alice"

    def test_missing_name_asks_follow_up(self, engine: IntentEngine) -> None:
        result = engine.extract_intent("create a new contact")
        assert result.task == "CREATE_CONTACT"
        assert result.missing == ["name"]
        assert result.is_complete is False
        assert len(result.follow_up) == 1
        assert result.follow_up[0]

    def test_quoted_name(self, engine: IntentEngine) -> None:
        result = engine.extract_intent('new contact called "Mary Ann" please')
        assert result.variables["name"] == "Mary Ann"

    def test_quoted_name_beats_named_regex(self, engine: IntentEngine) -> None:
        result = engine.extract_intent('add contact named Bob "Robert Jr"')
        assert result.variables["name"] == "Robert Jr"

    def test_quoted_name_before_anchor(self, engine: IntentEngine) -> None:
        result = engine.extract_intent('create contact "Mary Jane" named mary')
        assert result.task == "CREATE_CONTACT"
        assert result.variables["name"] == "Mary Jane"

    def test_idempotent(self, engine: IntentEngine) -> None:
        text = "add contact Alice with email alice@example.com"
        assert engine.extract_intent(text) == engine.extract_intent(text)

    def test_empty_text(self, engine: IntentEngine) -> None:
        result = engine.extract_intent("   ")
        assert result.is_unknown
        assert result.variables == {}

    def test_long_input_truncated(
        self, engine: IntentEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        text = "find contact alice " + "x" * (MAX_INPUT_LENGTH + 50)
        with caplog.at_level(logging.WARNING):
            result = engine.extract_intent(text)
        assert "truncated" in caplog.text
        assert result.task == "FIND_CONTACT"

    def test_to_dict_wire_format(self, engine: IntentEngine) -> None:
        data = engine.extract_intent("create a new contact named bob").to_dict()
        assert set(data) == {"task", "vars", "confidence", "missing", "follow_up", "is_complete"}
        assert data["vars"] == {"name": "bob"}

    def test_scores_reported(self, engine: IntentEngine) -> None:
        result = engine.extract_intent("find contact alice")
        assert set(result.scores) == {"CREATE_CONTACT", "FIND_CONTACT"}

    def test_create_engine_factory(self) -> None:
        assert create_engine().config.domain == "personal_assistant"


class TestIntentEngineConfigs:
    """Engine construction, reload and the example configuration."""

    def test_construct_from_mapping(self) -> None:
        engine = IntentEngine({"domain": "d", "intents": {"PING": {"keywords": ["ping"]}}})
        assert engine.extract_intent("ping").task == "PING"

    def test_invalid_config_fails_construction(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            IntentEngine({"domain": "d", "intents": {"EMPTY": {"description": "no signals"}}})
        assert exc_info.value.key == "EMPTY"

    def test_bad_regex_fails_construction(self) -> None:
        with pytest.raises(PatternCompileError):
            IntentEngine({"domain": "d", "intents": {"BAD": {"regex": ["*oops"]}}})

    def test_reload_swaps_configuration(self, engine: IntentEngine) -> None:
        before = engine.matchers
        engine.reload({"domain": "other", "intents": {"PING": {"keywords": ["ping"]}}})
        assert engine.matchers is not before
        assert engine.config.domain == "other"
        assert engine.extract_intent("ping").task == "PING"
        # The old snapshot is untouched
        assert before.config.domain == "personal_assistant"

    def test_failed_reload_keeps_previous(self, engine: IntentEngine) -> None:
        before = engine.matchers
        with pytest.raises(PatternCompileError):
            engine.reload({"domain": "d", "intents": {"BAD": {"regex": ["("]}}})
        assert engine.matchers is before
        assert engine.extract_intent("find contact alice").task == "FIND_CONTACT"

    def test_example_config_event(self) -> None:
        engine = IntentEngine.from_path(EXAMPLE_CONFIG)
        result = engine.extract_intent("create calendar event for team meeting tomorrow at 2pm")
        assert result.task == "CREATE_EVENT"
        assert result.variables["title"] == "team meeting"
        assert result.variables["date"] == "tomorrow"
        assert result.variables["time"] == "2pm"
        assert result.is_complete is True

    def test_example_config_event_missing_fields(self) -> None:
        engine = IntentEngine.from_path(EXAMPLE_CONFIG)
        result = engine.extract_intent("create calendar event")
        assert result.task == "CREATE_EVENT"
        assert result.missing == ["title", "date", "time"]
        assert result.follow_up[0] == "What should I call this event?"

    def test_example_config_task(self) -> None:
        engine = IntentEngine.from_path(EXAMPLE_CONFIG)
        result = engine.extract_intent("create new task called buy groceries")
        assert result.task == "CREATE_TASK"
        assert result.variables["title"] == "buy groceries"
        assert result.is_complete is True

    def test_example_config_weather(self) -> None:
        engine = IntentEngine.from_path(EXAMPLE_CONFIG)
        result = engine.extract_intent("what's the weather in Paris tomorrow")
        assert result.task == "WEATHER"
        assert result.variables["location"] == "Paris"
        assert result.variables["date"] == "tomorrow"
