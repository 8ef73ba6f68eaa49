"""
Intent Extractor
================

Turns a dealer question plus prior conversation turns into a typed Intent.
"""

from dataclasses import replace
from typing import Any, Sequence

from dealer_query.diagnostics import DiagnosticsObserver
from dealer_query.llm.base import LLMInterface
from dealer_query.models import (
    Aggregate,
    AggregateFunction,
    ConversationTurn,
    Filter,
    FilterOperator,
    Intent,
    SortDirection,
    SortSpec,
    TaskType,
)
from dealer_query.schema import SchemaDescriptor
from dealer_query.stages.base import PipelineStage
from dealer_query.stages.heuristics import filters_from_text, heuristic_intent, is_elliptical


class IntentExtractor(PipelineStage):
    """
    Dealer intent parser.

    With a generation service the intent comes from the model's JSON
    output; without one it is derived from keyword heuristics. Either way
    the raw structure is normalized against the schema and elliptical
    follow-ups get their filters from earlier turns.
    """

    SYSTEM_PROMPT = """You are a Dealer Intent Parser. You analyze questions about vehicle inventory and output structured JSON.

DEALER CONTEXT:
- You work with car dealerships
- Users ask about inventory (makes, models, prices, features)
- Common questions: counts, comparisons, filtering, specific vehicles
- Dealer language: "units", "inventory", "lot", "stock numbers", "days on lot"

SCHEMA COLUMNS AVAILABLE:
{columns}

OUTPUT FORMAT:
{{
  "task": "count|list|compare|aggregate|distinct",
  "filters": [
    {{"field": "make", "operator": "=", "value": "Honda"}},
    {{"field": "price_cents", "operator": "<", "value": 3000000}}
  ],
  "aggregates": [
    {{"function": "COUNT", "field": "*"}},
    {{"function": "AVG", "field": "price_cents"}}
  ],
  "sort": [
    {{"field": "price_cents", "direction": "ASC"}}
  ],
  "limit": 10,
  "needs_semantic": false,
  "context_maintained": true
}}

RULES:
- "how many" = task: "count", aggregates: [{{"function": "COUNT", "field": "*"}}]
- "show me" = task: "list", no aggregates
- "what types/styles" = task: "distinct", aggregates: [{{"function": "DISTINCT", "field": "body_style"}}]
- "average price" = task: "aggregate", aggregates: [{{"function": "AVG", "field": "price_cents"}}]
- "under $30k" = filters: [{{"field": "price_cents", "operator": "<", "value": 3000000}}] (prices are in cents)
- "black vehicles" = filters: [{{"field": "exterior_color", "operator": "=", "value": "Black"}}]
- "SUVs" = filters: [{{"field": "body_style", "operator": "=", "value": "SUV"}}]
- "Hondas" = filters: [{{"field": "make", "operator": "=", "value": "Honda"}}]
- Allowed operators: {operators}

CONTEXT HANDLING:
- If previous question was "how many hondas" and current is "show me" → use Honda filters
- If previous question was "black explorers" and current is "show me" → use Ford + Explorer + Black filters
- Always maintain context from previous questions

Respond with ONLY valid JSON, no explanations."""

    TEMPERATURE = 0.1
    MAX_TOKENS = 500

    def __init__(
        self,
        llm: LLMInterface | None = None,
        schema: SchemaDescriptor | None = None,
        observer: DiagnosticsObserver | None = None,
        default_limit: int = 10,
        carryover_turns: int = 1,
    ) -> None:
        super().__init__(llm=llm, schema=schema, observer=observer)
        self.default_limit = default_limit
        self.carryover_turns = carryover_turns
        self.SYSTEM_PROMPT = self.SYSTEM_PROMPT.format(
            columns=self.schema.column_listing(),
            operators=", ".join(self.schema.operators),
        )

    @property
    def name(self) -> str:
        return "intent_extractor"

    def extract(
        self, question: str, history: Sequence[ConversationTurn] | None = None
    ) -> Intent:
        """
        Extract a structured intent. Never raises.

        Args:
            question: Free-text dealer question
            history: Prior turns, oldest first

        Returns:
            A fully shaped Intent; the conservative default on failure
        """
        history = list(history or [])
        try:
            if self.llm is None:
                intent = heuristic_intent(question, default_limit=self.default_limit)
            else:
                raw = self._complete_json(self.build_prompt(question, history))
                intent = self.normalize(raw, question)
            return self.apply_context(intent, question, history)
        except Exception as e:
            message = self._fallback(e)
            return Intent.default(question, error=message)

    def build_prompt(self, question: str, history: Sequence[ConversationTurn]) -> str:
        prompt = f'Question: "{question}"'
        if history:
            exchanges = "\n\n".join(
                f'{i}. User: "{turn.question}"\n   AI: "{turn.answer}"'
                for i, turn in enumerate(history, start=1)
            )
            prompt += (
                f"\n\nPrevious conversation:\n{exchanges}\n\n"
                'IMPORTANT: If the current question is "show me" or similar, extract '
                "the exact criteria from the previous question to show those specific vehicles."
            )
        return prompt + "\n\nParse intent:"

    def normalize(self, raw: dict, question: str) -> Intent:
        """Default every missing field and drop anything off the whitelist."""
        try:
            task = TaskType(str(raw.get("task", "")).lower())
        except ValueError:
            task = TaskType.LIST

        return Intent(
            task=task,
            filters=tuple(f for f in map(self._filter, _as_list(raw.get("filters"))) if f),
            aggregates=tuple(a for a in map(self._aggregate, _as_list(raw.get("aggregates"))) if a),
            sort=tuple(s for s in map(self._sort, _as_list(raw.get("sort"))) if s),
            limit=self._limit(raw.get("limit")),
            needs_semantic=raw.get("needs_semantic") is True,
            context_maintained=raw.get("context_maintained") is True,
            original_question=question,
        )

    def apply_context(
        self, intent: Intent, question: str, history: Sequence[ConversationTurn]
    ) -> Intent:
        """
        Resolve an elliptical follow-up against earlier turns.

        Walks back at most ``carryover_turns`` turns and takes the filters of
        the first one that yields any. Questions with their own subject keep
        their filters; ``context_maintained`` is only reported when filters
        were actually recovered.
        """
        if not is_elliptical(question):
            if intent.context_maintained and not history:
                return replace(intent, context_maintained=False)
            return intent

        if intent.filters:
            # The model already resolved the referent
            return replace(intent, task=TaskType.LIST, aggregates=(), context_maintained=True)

        for turn in list(reversed(history))[: self.carryover_turns]:
            recovered = filters_from_text(turn.question)
            if recovered:
                return replace(
                    intent,
                    task=TaskType.LIST,
                    filters=recovered,
                    aggregates=(),
                    context_maintained=True,
                )

        return replace(intent, context_maintained=False)

    def _filter(self, raw: Any) -> Filter | None:
        if not isinstance(raw, dict) or not self.schema.is_column(raw.get("field")):
            return None
        try:
            operator = FilterOperator(str(raw.get("operator", "=")).strip().upper())
        except ValueError:
            return None

        value = raw.get("value")
        if operator == FilterOperator.IN:
            values = value if isinstance(value, list) else [value]
            values = [v for v in values if isinstance(v, (str, int, float)) and not isinstance(v, bool)]
            if not values:
                return None
            return Filter(raw["field"], operator, tuple(values))
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return None
        return Filter(raw["field"], operator, value)

    def _aggregate(self, raw: Any) -> Aggregate | None:
        if not isinstance(raw, dict):
            return None
        try:
            function = AggregateFunction(str(raw.get("function", "")).strip().upper())
        except ValueError:
            return None
        field = raw.get("field", "*")
        if field == "*" and function == AggregateFunction.COUNT:
            return Aggregate(function, "*")
        if not self.schema.is_column(field):
            return None
        return Aggregate(function, field)

    def _sort(self, raw: Any) -> SortSpec | None:
        if not isinstance(raw, dict) or not self.schema.is_column(raw.get("field")):
            return None
        try:
            direction = SortDirection(str(raw.get("direction", "ASC")).strip().upper())
        except ValueError:
            direction = SortDirection.ASC
        return SortSpec(raw["field"], direction)

    def _limit(self, raw: Any) -> int:
        if isinstance(raw, bool):
            return self.default_limit
        try:
            limit = int(raw)
        except (TypeError, ValueError):
            return self.default_limit
        return limit if limit > 0 else self.default_limit


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []

