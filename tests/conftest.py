"""
Pytest Fixtures
===============

Shared fixtures for dealer query pipeline tests.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dealer_query.diagnostics import FallbackEvent
from dealer_query.executor import SQLiteExecutor
from dealer_query.llm.mock import MockLLM
from dealer_query.models import ConversationTurn, Filter, Intent, TaskType
from dealer_query.pipeline import QueryPipeline
from dealer_query.sample_data import SAMPLE_VEHICLES
from dealer_query.schema import VEHICLES_SCHEMA, SchemaDescriptor


class RecordingObserver:
    """Observer that keeps every fallback event for assertions."""

    def __init__(self) -> None:
        self.events: list[FallbackEvent] = []

    def record(self, event: FallbackEvent) -> None:
        self.events.append(event)

    @property
    def stages(self) -> list[str]:
        return [event.stage for event in self.events]


@pytest.fixture
def schema() -> SchemaDescriptor:
    return VEHICLES_SCHEMA


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def honda_intent() -> Intent:
    """Intent for "how many hondas do we have?"."""
    return Intent(
        task=TaskType.COUNT,
        filters=(Filter("make", "=", "Honda"),),
        original_question="how many hondas do we have?",
    )


@pytest.fixture
def honda_history() -> list[ConversationTurn]:
    return [
        ConversationTurn(
            question="how many hondas do we have?",
            answer="We have 4 vehicles matching your criteria.",
        )
    ]


@pytest.fixture
def executor():
    """In-memory executor seeded with the sample lot."""
    executor = SQLiteExecutor()
    executor.load(SAMPLE_VEHICLES)
    yield executor
    executor.close()


@pytest.fixture
def mock_llm_dealer() -> MockLLM:
    """Mock LLM answering the intent prompts of common dealer questions."""
    return MockLLM(
        responses={
            "how many hondas": [
                '{"task": "count", "filters": [{"field": "make", "operator": "=", "value": "Honda"}], '
                '"aggregates": [{"function": "COUNT", "field": "*"}], "limit": 10}'
            ],
            "types of jeeps": [
                '```json\n{"task": "distinct", "filters": [{"field": "make", "operator": "=", '
                '"value": "Jeep"}], "aggregates": [{"function": "DISTINCT", "field": "body_style"}]}\n```'
            ],
        }
    )


@pytest.fixture
def mock_llm_timeout() -> MockLLM:
    """Mock LLM whose every call times out."""
    return MockLLM(failures={"": TimeoutError("generation timed out")})


@pytest.fixture
def pipeline(executor: SQLiteExecutor, observer: RecordingObserver) -> QueryPipeline:
    """Offline pipeline: heuristics, deterministic SQL, templated answers."""
    return QueryPipeline(executor=executor, observer=observer)
