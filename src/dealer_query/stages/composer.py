"""
Answer Composer
===============

Formats verified results into a dealer-friendly answer.
"""

import json
from typing import Any, Sequence

from dealer_query.diagnostics import DiagnosticsObserver
from dealer_query.llm.base import LLMInterface
from dealer_query.models import (
    Answer,
    AnswerType,
    FilterOperator,
    Intent,
    ResultType,
    Row,
    TaskType,
    Verification,
)
from dealer_query.schema import SchemaDescriptor
from dealer_query.stages.base import PipelineStage
from dealer_query.stages.synthesizer import render_condition

FALLBACK_ANSWER = "I found the information you requested."
PREVIEW_SIZE = 5

NEXT_ACTIONS = {
    AnswerType.COUNT: [
        "Show me these vehicles",
        "Filter by price range",
        "Sort by different criteria",
    ],
    AnswerType.LIST: [
        "Filter by price range",
        "Sort by mileage",
        "Export to CSV",
        "Create ad campaign",
    ],
    AnswerType.DISTINCT: [
        "Show me vehicles of this type",
        "Compare different types",
        "Filter by specific type",
    ],
    AnswerType.AGGREGATE: [
        "Show me vehicles above average",
        "Show me vehicles below average",
        "Compare with other metrics",
    ],
}

FIELD_NOUNS = {
    "body_style": "types",
    "vehicle_type": "types",
    "make": "makes",
    "model": "models",
    "trim": "trims",
    "exterior_color": "colors",
    "interior_color": "interior colors",
    "year": "model years",
    "drivetrain": "drivetrains",
    "fuel_type": "fuel types",
    "transmission": "transmissions",
    "location": "locations",
}

AGGREGATE_WORDS = {
    "AVG": "average",
    "SUM": "total",
    "MIN": "lowest",
    "MAX": "highest",
    "COUNT": "count",
}

FIELD_WORDS = {
    "price_cents": "price",
    "days_on_lot": "days on lot",
}

TASK_ANSWER_TYPES = {
    TaskType.COUNT: AnswerType.COUNT,
    TaskType.LIST: AnswerType.LIST,
    TaskType.DISTINCT: AnswerType.DISTINCT,
    TaskType.AGGREGATE: AnswerType.AGGREGATE,
    TaskType.COMPARE: AnswerType.AGGREGATE,
}


def format_price(price_cents: Any) -> Any:
    """Render a price held in cents: ``2500000`` → ``"$25,000"``."""
    if isinstance(price_cents, bool) or not isinstance(price_cents, (int, float)):
        return price_cents
    dollars = price_cents / 100
    if float(dollars).is_integer():
        return f"${int(dollars):,}"
    return f"${dollars:,.2f}"


def format_mileage(mileage: Any) -> Any:
    if isinstance(mileage, bool) or not isinstance(mileage, (int, float)):
        return mileage
    return f"{round(mileage):,} miles"


def format_value(field: str, value: Any) -> Any:
    if field == "price_cents":
        return format_price(value)
    if field == "mileage":
        return format_mileage(value)
    if isinstance(value, float):
        return f"{value:,.1f}" if not value.is_integer() else f"{int(value):,}"
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return value


def join_words(values: Sequence[Any]) -> str:
    """``["SUV"]`` → ``SUV``; ``["SUV", "TRUCK"]`` → ``SUV and TRUCK``."""
    words = [str(v) for v in values]
    if len(words) <= 1:
        return "".join(words)
    return f"{', '.join(words[:-1])} and {words[-1]}"


def has_values(rows: Sequence[Row]) -> bool:
    """False when every cell is NULL, as with an aggregate over no matching rows."""
    return any(value is not None for row in rows for value in row.values())


def first_value(rows: Sequence[Row]) -> Any:
    if not rows or not rows[0]:
        return None
    return next(iter(rows[0].values()))


def describe_vehicle(row: Row) -> str:
    """One-line preview: ``2021 Honda Civic, $24,500, 12,000 miles``."""
    title = " ".join(
        str(row[key]) for key in ("year", "make", "model", "trim") if row.get(key)
    )
    parts = [title or str(row.get("stock_number") or "Vehicle")]
    if row.get("price_cents") is not None:
        parts.append(format_price(row["price_cents"]))
    if row.get("mileage") is not None:
        parts.append(format_mileage(row["mileage"]))
    return ", ".join(str(p) for p in parts)


def subject_for(intent: Intent) -> str:
    """Plural noun for the vehicles a question is about, e.g. ``Jeeps``."""
    for condition in intent.filters:
        if condition.field == "make" and condition.operator == FilterOperator.EQ:
            return f"{condition.value}s"
    return "vehicles"


def create_evidence(intent: Intent, rows: Sequence[Row], answer_type: AnswerType) -> str:
    evidence = []
    if answer_type == AnswerType.COUNT:
        evidence.append(f"COUNT query returned {first_value(rows) or 0} vehicles")
    elif answer_type == AnswerType.LIST:
        evidence.append(f"{len(rows)} vehicles found and displayed")
    elif answer_type == AnswerType.DISTINCT:
        values = ", ".join(str(first_value([row])) for row in rows)
        evidence.append(f"DISTINCT query found: {values}")
    else:
        if has_values(rows):
            evidence.append(f"Aggregate query calculated: {first_value(rows)}")
        else:
            evidence.append("Aggregate query matched no vehicles")

    if intent.filters:
        conditions = ", ".join(render_condition(f) for f in intent.filters)
        evidence.append(f"Filters applied: {conditions}")
    return "; ".join(evidence)


class AnswerComposer(PipelineStage):
    """
    Template-based composer.

    The answer sentence, summary and evidence come from fixed templates and
    the rows; the model, when enabled, may only rephrase the sentence and
    the summary.
    """

    SYSTEM_PROMPT = """You are a Dealer Answer Composer. You format database results into natural, helpful responses.

DEALER CONTEXT:
- You work with car dealerships
- Users are dealers, sales managers, inventory managers
- Responses should be professional, accurate, and actionable
- Use dealer terminology: "units", "inventory", "lot", "stock numbers"

You receive a drafted answer. Rephrase it without changing any number,
price or vehicle it mentions.

RESPONSE FORMAT:
{
  "answer": "Natural language response",
  "summary": "Brief summary of what was found"
}

Respond with ONLY valid JSON, no explanations."""

    TEMPERATURE = 0.3
    MAX_TOKENS = 400

    def __init__(
        self,
        llm: LLMInterface | None = None,
        schema: SchemaDescriptor | None = None,
        observer: DiagnosticsObserver | None = None,
        use_rephrasing: bool = False,
    ) -> None:
        super().__init__(llm=llm, schema=schema, observer=observer)
        self.use_rephrasing = use_rephrasing and llm is not None

    @property
    def name(self) -> str:
        return "answer_composer"

    def compose(
        self,
        question: str,
        intent: Intent,
        sql: str,
        rows: Sequence[Row],
        verification: Verification,
    ) -> Answer:
        """
        Build the answer. Never raises.

        A failed rephrasing keeps the templated answer and records the error
        on it; any other failure returns the generic answer.
        """
        try:
            rows = list(rows)
            answer = self._template(question, intent, sql, rows, verification)
        except Exception as e:
            message = self._fallback(e)
            return Answer(
                answer=FALLBACK_ANSWER,
                answer_type=AnswerType.LIST,
                data_count=len(rows) if isinstance(rows, list) else 0,
                summary="Results found",
                next_actions=[],
                evidence="Database query executed successfully",
                original_question=question,
                sql=sql,
                verification=verification,
                error=message,
            )

        if self.use_rephrasing:
            try:
                answer = self._rephrase(answer, rows)
            except Exception as e:
                answer.error = self._fallback(e)
        return answer

    def answer_type_for(self, intent: Intent, verification: Verification | None) -> AnswerType:
        """
        Template to use. The intent's task decides unless the verifier found
        that the statement has a different, known shape.
        """
        if (
            verification is not None
            and not verification.valid
            and verification.result_type != ResultType.UNKNOWN
        ):
            return AnswerType(verification.result_type.value)
        return TASK_ANSWER_TYPES[intent.task]

    def _template(
        self,
        question: str,
        intent: Intent,
        sql: str,
        rows: list[Row],
        verification: Verification,
    ) -> Answer:
        answer_type = self.answer_type_for(intent, verification)
        subject = subject_for(intent)

        if answer_type == AnswerType.COUNT:
            count = first_value(rows)
            data_count = int(count) if isinstance(count, (int, float)) else len(rows)
            noun = "vehicle" if data_count == 1 else "vehicles"
            text = f"We have {data_count:,} {noun} matching your criteria."
            summary = f"{data_count} {subject} found"
        elif answer_type == AnswerType.DISTINCT:
            text, summary = self._distinct(intent, rows, subject)
            data_count = len(rows)
        elif answer_type == AnswerType.AGGREGATE:
            text, summary = self._aggregate(intent, rows, subject)
            data_count = len(rows) if has_values(rows) else 0
        else:
            data_count = len(rows)
            if rows:
                preview = "\n".join(f"- {describe_vehicle(row)}" for row in rows[:PREVIEW_SIZE])
                text = f"Here are the {data_count} {subject} in our inventory:\n{preview}"
                if data_count > PREVIEW_SIZE:
                    text += f"\n...and {data_count - PREVIEW_SIZE} more."
            else:
                text = f"I couldn't find any {subject} matching your criteria."
            summary = f"{data_count} {subject} displayed"

        return Answer(
            answer=text,
            answer_type=answer_type,
            data_count=data_count,
            summary=summary,
            next_actions=list(NEXT_ACTIONS[answer_type]),
            evidence=create_evidence(intent, rows, answer_type),
            original_question=question,
            sql=sql,
            verification=verification,
        )

    def _distinct(self, intent: Intent, rows: list[Row], subject: str) -> tuple[str, str]:
        field = next(iter(rows[0]), "") if rows else ""
        noun = FIELD_NOUNS.get(field, "values")
        values = [first_value([row]) for row in rows if first_value([row]) is not None]
        if not values:
            return f"I couldn't find any {subject} matching your criteria.", f"No {noun} found"
        text = f"We have {len(values)} different {noun} of {subject}: {join_words(values)}."
        return text, f"{len(values)} {noun} found"

    def _aggregate(self, intent: Intent, rows: list[Row], subject: str) -> tuple[str, str]:
        # SQL aggregates over no matching rows still return one row of NULLs
        if not has_values(rows):
            return f"I couldn't find any {subject} to calculate that for.", "No data to aggregate"

        if len(rows) == 1 and intent.task != TaskType.COMPARE:
            phrases = [self._aggregate_phrase(column, value) for column, value in rows[0].items()]
            sentence = join_words(phrases)
            return f"{sentence[:1].upper()}{sentence[1:]}.", "Aggregate calculated"

        group_field = next(iter(rows[0]))
        lines = []
        for row in rows:
            items = list(row.items())
            label = items[0][1]
            values = ", ".join(self._aggregate_phrase(column, value) for column, value in items[1:])
            lines.append(f"- {label}: {values}")
        text = f"Here is the breakdown by {FIELD_WORDS.get(group_field, group_field.replace('_', ' '))}:\n" + "\n".join(lines)
        noun = "group" if len(rows) == 1 else "groups"
        return text, f"{len(rows)} {noun} compared"

    def _aggregate_phrase(self, column: str, value: Any) -> str:
        function, _, field = column.partition("(")
        function = function.strip().upper()
        field = field.rstrip(")").strip()
        if function == "COUNT":
            return f"the vehicle count is {format_value('', value)}"
        word = AGGREGATE_WORDS.get(function, function.lower())
        label = FIELD_WORDS.get(field, field.replace("_", " ")) if field else column
        return f"the {word} {label} is {format_value(field, value)}"

    def _rephrase(self, answer: Answer, rows: list[Row]) -> Answer:
        prompt = (
            f'Question: "{answer.original_question}"\n'
            f'Drafted answer: "{answer.answer}"\n'
            f'Summary: "{answer.summary}"\n'
            f"Results: {json.dumps(rows[:3], default=str)}\n\nCompose answer:"
        )
        rephrased = self._complete_json(prompt)
        if isinstance(rephrased.get("answer"), str) and rephrased["answer"].strip():
            answer.answer = rephrased["answer"].strip()
        if isinstance(rephrased.get("summary"), str) and rephrased["summary"].strip():
            answer.summary = rephrased["summary"].strip()
        return answer
