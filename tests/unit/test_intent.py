"""
Unit Tests for IntentExtractor
==============================

Tests for intent extraction, normalization and context carryover.
"""

from dealer_query.diagnostics import ErrorKind
from dealer_query.llm.mock import MockLLM
from dealer_query.models import (
    AggregateFunction,
    ConversationTurn,
    Filter,
    FilterOperator,
    Intent,
    TaskType,
)
from dealer_query.stages.intent import IntentExtractor


class TestOfflineExtraction:
    """Extraction without a generation service."""

    def test_count_question(self) -> None:
        """Test that a count question yields a count intent with a make filter."""
        intent = IntentExtractor().extract("how many hondas do we have?", [])
        assert intent.task == TaskType.COUNT
        assert intent.filters == (Filter("make", "=", "Honda"),)
        assert intent.context_maintained is False
        assert intent.error is None

    def test_show_me_carries_over_previous_filters(
        self, honda_history: list[ConversationTurn]
    ) -> None:
        """Test that "show me" after a Honda count lists Hondas."""
        intent = IntentExtractor().extract("show me", honda_history)
        assert intent.task == TaskType.LIST
        assert intent.filters == (Filter("make", FilterOperator.EQ, "Honda"),)
        assert intent.context_maintained is True

    def test_show_me_without_history(self) -> None:
        """Test that an unresolvable follow-up keeps empty filters."""
        intent = IntentExtractor().extract("show me", [])
        assert intent.task == TaskType.LIST
        assert intent.filters == ()
        assert intent.context_maintained is False

    def test_carryover_depth(self) -> None:
        """Test that carryover only reaches back the configured number of turns."""
        history = [
            ConversationTurn("how many hondas do we have?"),
            ConversationTurn("thanks"),
        ]
        shallow = IntentExtractor(carryover_turns=1).extract("show me", history)
        deep = IntentExtractor(carryover_turns=2).extract("show me", history)
        assert shallow.filters == ()
        assert shallow.context_maintained is False
        assert deep.filters == (Filter("make", "=", "Honda"),)
        assert deep.context_maintained is True

    def test_explicit_subject_ignores_history(
        self, honda_history: list[ConversationTurn]
    ) -> None:
        """Test that a question naming its own subject does not inherit filters."""
        intent = IntentExtractor().extract("show me the jeeps", honda_history)
        assert intent.filters == (Filter("make", "=", "Jeep"),)


class TestGeneratedExtraction:
    """Extraction through a generation service."""

    def test_parses_model_json(self, mock_llm_dealer: MockLLM) -> None:
        extractor = IntentExtractor(llm=mock_llm_dealer)
        intent = extractor.extract("how many hondas do we have?", [])
        assert intent.task == TaskType.COUNT
        assert intent.filters == (Filter("make", "=", "Honda"),)
        assert intent.aggregates[0].function == AggregateFunction.COUNT
        assert intent.original_question == "how many hondas do we have?"

    def test_fenced_json(self, mock_llm_dealer: MockLLM) -> None:
        """Test that markdown fences around the JSON are tolerated."""
        intent = IntentExtractor(llm=mock_llm_dealer).extract("what types of jeeps do we have?")
        assert intent.task == TaskType.DISTINCT
        assert intent.aggregates[0].field == "body_style"

    def test_prompt_includes_history(self, honda_history: list[ConversationTurn]) -> None:
        llm = MockLLM(default='{"task": "list"}')
        IntentExtractor(llm=llm).extract("show me", honda_history)
        prompt = llm.prompts[0]
        assert "Previous conversation" in prompt
        assert "how many hondas do we have?" in prompt
        assert prompt.endswith("Parse intent:")

    def test_model_without_filters_gets_carryover(
        self, honda_history: list[ConversationTurn]
    ) -> None:
        """Test that carryover fills in filters the model did not resolve."""
        llm = MockLLM(default='{"task": "list", "filters": []}')
        intent = IntentExtractor(llm=llm).extract("show me", honda_history)
        assert intent.filters == (Filter("make", "=", "Honda"),)
        assert intent.context_maintained is True

    def test_elliptical_with_model_filters_becomes_list(
        self, honda_history: list[ConversationTurn]
    ) -> None:
        """Test that a count intent for a follow-up is switched to a list."""
        llm = MockLLM(
            default='{"task": "count", "filters": [{"field": "make", "operator": "=", "value": "Honda"}], '
            '"aggregates": [{"function": "COUNT", "field": "*"}]}'
        )
        intent = IntentExtractor(llm=llm).extract("show me", honda_history)
        assert intent.task == TaskType.LIST
        assert intent.aggregates == ()
        assert intent.context_maintained is True


class TestNormalization:
    """Tests that raw model output is fully shaped and whitelisted."""

    def test_missing_fields_are_defaulted(self) -> None:
        intent = IntentExtractor().normalize({}, "q")
        assert intent == Intent(original_question="q")
        assert intent.limit == 10

    def test_unknown_task_becomes_list(self) -> None:
        intent = IntentExtractor().normalize({"task": "explode"}, "q")
        assert intent.task == TaskType.LIST

    def test_off_whitelist_entries_dropped(self) -> None:
        raw = {
            "task": "list",
            "filters": [
                {"field": "malicious_column; DROP TABLE users", "operator": "=", "value": "x"},
                {"field": "make", "operator": "~", "value": "Honda"},
                {"field": "make", "operator": "=", "value": {"nested": True}},
                {"field": "exterior_color", "operator": "=", "value": "Black"},
            ],
            "aggregates": [{"function": "MEDIAN", "field": "price_cents"}],
            "sort": [{"field": "secret", "direction": "ASC"}],
            "limit": -3,
        }
        intent = IntentExtractor().normalize(raw, "q")
        assert intent.filters == (Filter("exterior_color", "=", "Black"),)
        assert intent.aggregates == ()
        assert intent.sort == ()
        assert intent.limit == 10

    def test_in_filter_values(self) -> None:
        raw = {"filters": [{"field": "make", "operator": "in", "value": ["Honda", "Toyota"]}]}
        intent = IntentExtractor().normalize(raw, "q")
        assert intent.filters[0].operator == FilterOperator.IN
        assert intent.filters[0].value == ("Honda", "Toyota")


class TestExtractionFallback:
    """Tests that extraction failures return the conservative default."""

    def test_malformed_output(self, observer) -> None:
        llm = MockLLM(default="Sure! Here is the intent you asked for")
        intent = IntentExtractor(llm=llm, observer=observer).extract("how many hondas?")
        assert intent.task == TaskType.LIST
        assert intent.filters == ()
        assert intent.limit == 10
        assert intent.needs_semantic is False
        assert intent.context_maintained is False
        assert intent.error
        assert observer.events[0].stage == "intent_extractor"
        assert observer.events[0].kind == ErrorKind.MALFORMED_OUTPUT

    def test_timeout(self, mock_llm_timeout: MockLLM, observer) -> None:
        intent = IntentExtractor(llm=mock_llm_timeout, observer=observer).extract("show me trucks")
        assert intent == Intent.default("show me trucks", error="generation timed out")
        assert observer.events[0].kind == ErrorKind.GENERATION_FAILURE
