"""
Result Verifier
===============

Cross-checks that a statement's shape and its rows answer the question the
intent describes. The verifier reports; it never repairs.
"""

import json
from dataclasses import replace
from typing import Sequence

from dealer_query.diagnostics import DiagnosticsObserver
from dealer_query.llm.base import LLMInterface
from dealer_query.models import (
    FilterOperator,
    Intent,
    ResultType,
    Row,
    TaskType,
    Verification,
)
from dealer_query.schema import SchemaDescriptor
from dealer_query.stages.base import PipelineStage
from dealer_query.stages.synthesizer import build_statement, render_condition

AGGREGATE_CALLS = ("AVG(", "SUM(", "MIN(", "MAX(")
AGGREGATE_NAMES = ("COUNT", "AVG", "SUM", "MIN", "MAX")
LIMIT_CHECK_CEILING = 100


def detect_result_type(sql: str, rows: Sequence[Row]) -> ResultType:
    """Infer the result shape from the statement text and the rows."""
    upper_sql = sql.upper()

    if "COUNT(" in upper_sql:
        return ResultType.COUNT
    if "DISTINCT" in upper_sql:
        return ResultType.DISTINCT
    if any(call in upper_sql for call in AGGREGATE_CALLS):
        return ResultType.AGGREGATE
    if len(rows) == 1 and rows[0] and len(rows[0]) == 1:
        key = str(next(iter(rows[0]))).upper()
        if any(name in key for name in AGGREGATE_NAMES):
            return ResultType.AGGREGATE
    return ResultType.LIST


def check_shape(intent: Intent, sql: str) -> list[str]:
    """Task ↔ statement shape mismatches. Any entry makes the result invalid."""
    upper_sql = sql.upper()
    issues = []

    if intent.task == TaskType.COUNT and "COUNT(" not in upper_sql:
        issues.append("Intent asks for count but SQL does not use COUNT()")
    if intent.task == TaskType.LIST and "COUNT(" in upper_sql:
        issues.append("Intent asks for list but SQL uses COUNT()")
    if intent.task == TaskType.DISTINCT and "DISTINCT" not in upper_sql:
        issues.append("Intent asks for distinct values but SQL does not use DISTINCT")
    if intent.task == TaskType.AGGREGATE and not any(
        call in upper_sql for call in AGGREGATE_CALLS + ("COUNT(", "DISTINCT")
    ):
        issues.append("Intent asks for an aggregate but SQL uses no aggregate function")
    if intent.task == TaskType.COMPARE and "GROUP BY" not in upper_sql:
        issues.append("Intent asks for a comparison but SQL has no GROUP BY")
    return issues


def check_filters(intent: Intent, sql: str, schema: SchemaDescriptor) -> list[str]:
    """Whitelisted ``=`` and ``<`` filters must appear literally in the SQL."""
    issues = []
    for condition in intent.filters:
        if not schema.is_column(condition.field):
            continue
        if condition.operator in (FilterOperator.EQ, FilterOperator.LT):
            fragment = render_condition(condition)
            if fragment not in sql:
                issues.append(f"Missing filter: {fragment}")

    if (
        intent.task == TaskType.LIST
        and intent.limit
        and intent.limit < LIMIT_CHECK_CEILING
        and "LIMIT" not in sql.upper()
    ):
        issues.append(f"Missing LIMIT {intent.limit}")
    return issues


def check_result_count(intent: Intent, row_count: int) -> list[str]:
    issues = []
    if intent.task == TaskType.COUNT and row_count != 1:
        issues.append(f"Count query should return 1 row, got {row_count}")
    if intent.task == TaskType.LIST and row_count == 0 and not intent.filters:
        issues.append("List query with no filters returned 0 rows - check data")
    if intent.limit and row_count > intent.limit:
        issues.append(f"Result count ({row_count}) exceeds limit ({intent.limit})")
    return issues


class ResultVerifier(PipelineStage):
    """
    Deterministic verifier with an optional model review.

    Shape mismatches invalidate the result; missing filters and row-count
    anomalies only lower confidence.
    """

    SYSTEM_PROMPT = """You are a Dealer Data Verifier. You check if SQL results match the user's intent.

YOUR JOB:
1. Compare the user's question with the SQL query
2. Check if the database results make sense
3. Identify any mismatches or errors
4. Suggest fixes if needed

VERIFICATION CRITERIA:
- Does the SQL query address the user's question?
- Are the results the right type (count vs list vs distinct)?
- Do the numbers make sense?
- Are the filters applied correctly?
- Is the context maintained from previous questions?

OUTPUT FORMAT:
{
  "valid": true/false,
  "confidence": 0.0-1.0,
  "issues": ["issue1", "issue2"],
  "summary": "Brief explanation of verification",
  "suggested_fix": "SQL query if fix needed",
  "result_type": "count|list|distinct|aggregate"
}

Respond with ONLY valid JSON, no explanations."""

    TEMPERATURE = 0.1
    MAX_TOKENS = 300

    SHAPE_PENALTY = 0.3
    ISSUE_PENALTY = 0.1

    def __init__(
        self,
        llm: LLMInterface | None = None,
        schema: SchemaDescriptor | None = None,
        observer: DiagnosticsObserver | None = None,
        use_review: bool = False,
    ) -> None:
        super().__init__(llm=llm, schema=schema, observer=observer)
        self.use_review = use_review and llm is not None

    @property
    def name(self) -> str:
        return "result_verifier"

    def verify(
        self, question: str, intent: Intent, sql: str, rows: Sequence[Row]
    ) -> Verification:
        """
        Verify a statement and its rows against the intent. Never raises.

        Returns:
            Verification; ``valid=True`` with confidence 0.5 and result type
            ``unknown`` when the deterministic checks failed. A failed model
            review keeps the checked result and adds the error to its issues.
        """
        try:
            rows = list(rows)
            checked = self._check(intent, sql, rows)
        except Exception as e:
            message = self._fallback(e)
            return Verification(
                valid=True,
                confidence=0.5,
                issues=(f"Verification error: {message}",),
                result_type=ResultType.UNKNOWN,
                summary="Verification failed due to error",
                result_count=len(rows) if isinstance(rows, list) else 0,
            )

        if not self.use_review:
            return checked
        try:
            return self._review(question, intent, sql, rows, checked)
        except Exception as e:
            message = self._fallback(e)
            return replace(checked, issues=checked.issues + (f"Verification error: {message}",))

    def _check(self, intent: Intent, sql: str, rows: list[Row]) -> Verification:
        shape_issues = check_shape(intent, sql)
        other_issues = check_filters(intent, sql, self.schema) + check_result_count(intent, len(rows))

        confidence = 1.0 - self.SHAPE_PENALTY * len(shape_issues) - self.ISSUE_PENALTY * len(other_issues)
        confidence = round(min(1.0, max(0.0, confidence)), 2)

        suggested_fix = None
        if shape_issues:
            suggested_fix = build_statement(intent, self.schema).sql

        issues = shape_issues + other_issues
        if issues:
            summary = f"Found {len(issues)} issue(s) with the {intent.task.value} query"
        else:
            summary = f"SQL matches the {intent.task.value} intent and returned {len(rows)} row(s)"

        return Verification(
            valid=not shape_issues,
            confidence=confidence,
            issues=tuple(issues),
            result_type=self._result_type(intent, sql, rows, shape_issues),
            suggested_fix=suggested_fix,
            summary=summary,
            result_count=len(rows),
        )

    def _result_type(
        self, intent: Intent, sql: str, rows: list[Row], shape_issues: list[str]
    ) -> ResultType:
        if shape_issues:
            return detect_result_type(sql, rows)
        if intent.task == TaskType.COMPARE:
            return ResultType.AGGREGATE
        return ResultType(intent.task.value)

    def _review(
        self,
        question: str,
        intent: Intent,
        sql: str,
        rows: list[Row],
        checked: Verification,
    ) -> Verification:
        """Merge a model review into the deterministic verification."""
        prompt = (
            f'Question: "{question}"\n'
            f"Intent: {json.dumps(intent.to_dict())}\n"
            f'SQL: "{sql}"\n'
            f"Results: {json.dumps(rows[:5], default=str)}\n\nVerify:"
        )
        review = self._complete_json(prompt)

        issues = list(checked.issues)
        for issue in review.get("issues") or []:
            if isinstance(issue, str) and issue not in issues:
                issues.append(issue)

        confidence = checked.confidence
        reviewed = review.get("confidence")
        if isinstance(reviewed, (int, float)) and not isinstance(reviewed, bool):
            confidence = min(confidence, max(0.0, min(1.0, float(reviewed))))

        suggested_fix = checked.suggested_fix
        if not suggested_fix and isinstance(review.get("suggested_fix"), str):
            if "select" in review["suggested_fix"].lower():
                suggested_fix = review["suggested_fix"]

        return Verification(
            valid=checked.valid and review.get("valid") is not False,
            confidence=round(confidence, 2),
            issues=tuple(issues),
            result_type=checked.result_type,
            suggested_fix=suggested_fix,
            summary=review.get("summary") if isinstance(review.get("summary"), str) else checked.summary,
            result_count=checked.result_count,
        )
