"""
Unit Tests for AnswerComposer
=============================

Tests for answer templates, evidence, next actions and the fallback answer.
"""

import pytest

from dealer_query.diagnostics import ErrorKind
from dealer_query.llm.mock import MockLLM
from dealer_query.models import (
    Aggregate,
    AnswerType,
    Filter,
    Intent,
    ResultType,
    Verification,
)
from dealer_query.stages.composer import (
    NEXT_ACTIONS,
    AnswerComposer,
    describe_vehicle,
    format_mileage,
    format_price,
)

HONDA_COUNT_SQL = "SELECT COUNT(*) FROM vehicles WHERE make = 'Honda'"


@pytest.fixture
def ok() -> Verification:
    return Verification(valid=True, confidence=1.0)


class TestFormatting:
    """Tests for price and mileage formatting."""

    @pytest.mark.parametrize(
        "cents,expected",
        [(2500000, "$25,000"), (2450050, "$24,500.50"), (0, "$0"), ("call", "call")],
    )
    def test_format_price(self, cents, expected) -> None:
        assert format_price(cents) == expected

    def test_format_mileage(self) -> None:
        assert format_mileage(12345) == "12,345 miles"
        assert format_mileage(None) is None

    def test_describe_vehicle(self) -> None:
        row = {"year": 2021, "make": "Honda", "model": "Civic", "price_cents": 2450000, "mileage": 12000}
        assert describe_vehicle(row) == "2021 Honda Civic, $24,500, 12,000 miles"


class TestTemplates:
    """Tests for the four answer templates."""

    def test_count_answer(self, honda_intent: Intent, ok: Verification) -> None:
        """Test the count answer for the Honda question."""
        answer = AnswerComposer().compose(
            "how many hondas do we have?", honda_intent, HONDA_COUNT_SQL, [{"COUNT(*)": 15}], ok
        )
        assert answer.answer_type == AnswerType.COUNT
        assert answer.data_count == 15
        assert "15" in answer.answer
        assert answer.answer == "We have 15 vehicles matching your criteria."
        assert answer.next_actions == NEXT_ACTIONS[AnswerType.COUNT]
        assert answer.evidence == "COUNT query returned 15 vehicles; Filters applied: make = 'Honda'"
        assert answer.original_question == "how many hondas do we have?"
        assert answer.sql == HONDA_COUNT_SQL
        assert answer.verification is ok
        assert answer.error is None

    def test_distinct_answer(self, ok: Verification) -> None:
        """Test the distinct answer for the Jeep question."""
        intent = Intent(
            task="distinct",
            filters=(Filter("make", "=", "Jeep"),),
            aggregates=(Aggregate("DISTINCT", "body_style"),),
        )
        rows = [{"body_style": "SUV"}, {"body_style": "TRUCK"}]
        answer = AnswerComposer().compose(
            "what types of jeeps do we have?",
            intent,
            "SELECT DISTINCT body_style FROM vehicles WHERE make = 'Jeep'",
            rows,
            ok,
        )
        assert answer.answer_type == AnswerType.DISTINCT
        assert answer.data_count == 2
        assert "2 different types of Jeeps: SUV and TRUCK" in answer.answer
        assert answer.evidence.startswith("DISTINCT query found: SUV, TRUCK")

    def test_list_answer_previews_vehicles(self, ok: Verification) -> None:
        intent = Intent(task="list", filters=(Filter("make", "=", "Honda"),))
        rows = [
            {"year": 2021, "make": "Honda", "model": "Civic", "price_cents": 2450000, "mileage": 12000}
        ] * 7
        answer = AnswerComposer().compose("show me", intent, "SELECT * FROM vehicles", rows, ok)
        assert answer.answer_type == AnswerType.LIST
        assert answer.data_count == 7
        assert answer.answer.startswith("Here are the 7 Hondas in our inventory:")
        assert answer.answer.count("2021 Honda Civic") == 5
        assert "2 more" in answer.answer

    def test_empty_list(self, ok: Verification) -> None:
        answer = AnswerComposer().compose("show me", Intent(), "SELECT * FROM vehicles LIMIT 10", [], ok)
        assert answer.data_count == 0
        assert "couldn't find" in answer.answer

    def test_aggregate_answer(self, ok: Verification) -> None:
        intent = Intent(task="aggregate", aggregates=(Aggregate("AVG", "price_cents"),))
        answer = AnswerComposer().compose(
            "average price?", intent, "SELECT AVG(price_cents) FROM vehicles", [{"AVG(price_cents)": 2500000}], ok
        )
        assert answer.answer_type == AnswerType.AGGREGATE
        assert answer.answer == "The average price is $25,000."
        assert answer.next_actions == NEXT_ACTIONS[AnswerType.AGGREGATE]

    def test_compare_breakdown(self, ok: Verification) -> None:
        intent = Intent(task="compare", filters=(Filter("make", "IN", ("Honda", "Jeep")),))
        rows = [{"make": "Honda", "COUNT(*)": 4}, {"make": "Jeep", "COUNT(*)": 3}]
        answer = AnswerComposer().compose("compare", intent, "SELECT ...", rows, ok)
        assert answer.answer_type == AnswerType.AGGREGATE
        assert "- Honda: the vehicle count is 4" in answer.answer
        assert "- Jeep: the vehicle count is 3" in answer.answer

    def test_compare_breakdown_single_group(self, ok: Verification) -> None:
        """Test that a comparison matching one group is still shown as a breakdown."""
        intent = Intent(
            task="compare",
            filters=(Filter("make", "=", "Honda"),),
            aggregates=(Aggregate("COUNT", "*"), Aggregate("AVG", "price_cents")),
        )
        rows = [{"make": "Honda", "COUNT(*)": 4, "AVG(price_cents)": 3083750}]
        answer = AnswerComposer().compose("compare hondas by price", intent, "SELECT ...", rows, ok)
        assert answer.answer_type == AnswerType.AGGREGATE
        assert answer.answer.startswith("Here is the breakdown by make:")
        assert "- Honda: the vehicle count is 4, the average price is $30,837.50" in answer.answer
        assert "make make" not in answer.answer
        assert answer.summary == "1 group compared"

    def test_aggregate_over_no_matches(self, ok: Verification) -> None:
        """Test that an aggregate row of NULLs reads as nothing found."""
        intent = Intent(
            task="aggregate",
            filters=(Filter("make", "=", "Honda"), Filter("price_cents", "<", 500000)),
            aggregates=(Aggregate("AVG", "price_cents"),),
        )
        answer = AnswerComposer().compose(
            "what is the average price of hondas under $5k?",
            intent,
            "SELECT AVG(price_cents) FROM vehicles WHERE make = 'Honda' AND price_cents < 500000",
            [{"AVG(price_cents)": None}],
            ok,
        )
        assert answer.answer == "I couldn't find any Hondas to calculate that for."
        assert answer.data_count == 0
        assert answer.summary == "No data to aggregate"
        assert "None" not in answer.answer
        assert answer.evidence.startswith("Aggregate query matched no vehicles")

    def test_shape_mismatch_uses_verified_type(self, honda_intent: Intent) -> None:
        """Test that the template follows the rows when the statement shape disagrees."""
        verification = Verification(valid=False, confidence=0.7, result_type=ResultType.LIST)
        answer = AnswerComposer().compose(
            "how many hondas?", honda_intent, "SELECT * FROM vehicles LIMIT 10", [{"make": "Honda"}], verification
        )
        assert answer.answer_type == AnswerType.LIST


class TestRephrasingAndFallback:
    """Tests for model rephrasing and the generic fallback answer."""

    def test_rephrased_answer(self, honda_intent: Intent, ok: Verification) -> None:
        llm = MockLLM(default='{"answer": "You have 15 Hondas on the lot.", "summary": "15 Hondas"}')
        answer = AnswerComposer(llm=llm, use_rephrasing=True).compose(
            "how many hondas?", honda_intent, HONDA_COUNT_SQL, [{"COUNT(*)": 15}], ok
        )
        assert answer.answer == "You have 15 Hondas on the lot."
        assert answer.summary == "15 Hondas"
        assert answer.data_count == 15
        assert llm.prompts[0].endswith("Compose answer:")

    def test_rephrasing_failure_keeps_template(
        self, honda_intent: Intent, ok: Verification, observer
    ) -> None:
        """Test that a failed rephrasing still returns the templated answer."""
        llm = MockLLM(failures={"Compose answer": TimeoutError("composer timed out")})
        rows = [{"COUNT(*)": 15}]
        answer = AnswerComposer(llm=llm, observer=observer, use_rephrasing=True).compose(
            "how many hondas?", honda_intent, HONDA_COUNT_SQL, rows, ok
        )
        assert answer.answer == "We have 15 vehicles matching your criteria."
        assert answer.answer_type == AnswerType.COUNT
        assert answer.data_count == 15
        assert answer.error == "composer timed out"
        assert answer.next_actions == NEXT_ACTIONS[AnswerType.COUNT]
        assert observer.events[0].stage == "answer_composer"
        assert observer.events[0].kind == ErrorKind.GENERATION_FAILURE

    def test_template_failure_returns_generic_answer(self, ok: Verification, observer) -> None:
        rows = [None]
        answer = AnswerComposer(observer=observer).compose(
            "show me", Intent(task="list"), "SELECT * FROM vehicles LIMIT 10", rows, ok
        )
        assert answer.answer == "I found the information you requested."
        assert answer.answer_type == AnswerType.LIST
        assert answer.data_count == 1
        assert answer.error
        assert answer.next_actions == []
        assert observer.events[0].kind == ErrorKind.INTERNAL_ERROR

    def test_to_dict(self, honda_intent: Intent, ok: Verification) -> None:
        answer = AnswerComposer().compose("q", honda_intent, HONDA_COUNT_SQL, [{"COUNT(*)": 2}], ok)
        data = answer.to_dict()
        assert data["answer_type"] == "count"
        assert data["verification"]["valid"] is True
        assert "composed_at" in data
