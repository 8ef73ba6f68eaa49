"""
Data Models
===========

Value objects passed between the stages of the dealer query pipeline.

Everything here is created fresh for a single question and never shared
between requests.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


class TaskType(str, Enum):
    """Category of question being asked."""

    COUNT = "count"
    LIST = "list"
    COMPARE = "compare"
    AGGREGATE = "aggregate"
    DISTINCT = "distinct"


class FilterOperator(str, Enum):
    """Comparison operators allowed in a filter."""

    EQ = "="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    LIKE = "LIKE"
    IN = "IN"


class AggregateFunction(str, Enum):
    """Functions allowed in an aggregate."""

    COUNT = "COUNT"
    AVG = "AVG"
    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"
    DISTINCT = "DISTINCT"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class ResultType(str, Enum):
    """Shape of a query result as judged by the verifier."""

    COUNT = "count"
    LIST = "list"
    DISTINCT = "distinct"
    AGGREGATE = "aggregate"
    UNKNOWN = "unknown"


class AnswerType(str, Enum):
    """Response template used by the composer."""

    COUNT = "count"
    LIST = "list"
    DISTINCT = "distinct"
    AGGREGATE = "aggregate"


FilterValue = Union[str, int, float, tuple]


@dataclass(frozen=True)
class ConversationTurn:
    """A prior question/answer exchange supplied by the caller."""

    question: str
    answer: str = ""


@dataclass(frozen=True)
class Filter:
    """A single column/operator/value constraint on the vehicles relation."""

    field: str
    operator: FilterOperator
    value: FilterValue

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", FilterOperator(self.operator))
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))

    def to_dict(self) -> dict:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"field": self.field, "operator": self.operator.value, "value": value}


@dataclass(frozen=True)
class Aggregate:
    function: AggregateFunction
    field: str = "*"

    def __post_init__(self) -> None:
        object.__setattr__(self, "function", AggregateFunction(self.function))

    def to_dict(self) -> dict:
        return {"function": self.function.value, "field": self.field}


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", SortDirection(self.direction))

    def to_dict(self) -> dict:
        return {"field": self.field, "direction": self.direction.value}


@dataclass(frozen=True)
class Intent:
    """Structured representation of what a question asks for."""

    task: TaskType = TaskType.LIST
    filters: tuple[Filter, ...] = ()
    aggregates: tuple[Aggregate, ...] = ()
    sort: tuple[SortSpec, ...] = ()
    limit: int = 10
    needs_semantic: bool = False
    context_maintained: bool = False
    original_question: str = ""
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "task", TaskType(self.task))
        for name in ("filters", "aggregates", "sort"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @classmethod
    def default(cls, question: str = "", error: Optional[str] = None) -> "Intent":
        """Conservative intent used whenever extraction fails."""
        return cls(original_question=question, error=error)

    def to_dict(self) -> dict:
        data = {
            "task": self.task.value,
            "filters": [f.to_dict() for f in self.filters],
            "aggregates": [a.to_dict() for a in self.aggregates],
            "sort": [s.to_dict() for s in self.sort],
            "limit": self.limit,
            "needs_semantic": self.needs_semantic,
            "context_maintained": self.context_maintained,
            "original_question": self.original_question,
        }
        if self.error:
            data["error"] = self.error
        return data


SAFE_DEFAULT_SQL = "SELECT * FROM vehicles LIMIT 10"


@dataclass(frozen=True)
class SqlStatement:
    """
    A single SELECT against the vehicles relation.

    ``sql`` is the text form exchanged between stages. When the statement was
    built from an intent, ``parameterized_sql`` holds the same query with
    ``?`` placeholders and ``params`` the bound values; executors prefer it.
    """

    sql: str
    intent: Intent
    parameterized_sql: Optional[str] = None
    params: tuple = ()
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    error: Optional[str] = None

    @classmethod
    def safe_default(cls, intent: Intent, error: Optional[str] = None) -> "SqlStatement":
        return cls(
            sql=SAFE_DEFAULT_SQL,
            intent=intent,
            parameterized_sql=SAFE_DEFAULT_SQL,
            error=error,
        )

    @property
    def is_parameterized(self) -> bool:
        return self.parameterized_sql is not None

    def to_dict(self) -> dict:
        data = {
            "sql": self.sql,
            "parameterized_sql": self.parameterized_sql,
            "params": list(self.params),
            "generated_at": self.generated_at,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class SafetyResult:
    """Outcome of the safety filter."""

    valid: bool
    error: Optional[str] = None
    violations: tuple[str, ...] = ()


@dataclass(frozen=True)
class Verification:
    """Post-hoc check that a statement and its rows answer the question."""

    valid: bool
    confidence: float
    issues: tuple[str, ...] = ()
    result_type: ResultType = ResultType.UNKNOWN
    suggested_fix: Optional[str] = None
    summary: str = ""
    result_count: int = 0
    verified_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "confidence": self.confidence,
            "issues": list(self.issues),
            "result_type": self.result_type.value,
            "suggested_fix": self.suggested_fix,
            "summary": self.summary,
            "result_count": self.result_count,
            "verified_at": self.verified_at,
        }


@dataclass
class Answer:
    """Dealer-facing answer, enriched with the data it was built from."""

    answer: str
    answer_type: AnswerType
    data_count: int
    summary: str
    next_actions: list[str]
    evidence: str
    original_question: str = ""
    sql: str = ""
    verification: Optional[Verification] = None
    composed_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["answer_type"] = self.answer_type.value
        data["verification"] = self.verification.to_dict() if self.verification else None
        return data


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    model: str
    tokens_used: int = 0


@dataclass
class AuditEntry:
    """Single entry in the audit trail."""

    timestamp: str
    step: str
    input_data: dict
    output_data: dict


Row = dict[str, Any]


@dataclass
class PipelineResult:
    """Everything produced while answering one question."""

    answer: Answer
    intent: Intent
    statement: SqlStatement
    safety: SafetyResult
    verification: Verification
    rows: list[Row]
    audit_trail: list[AuditEntry]
    execution_error: Optional[str] = None
