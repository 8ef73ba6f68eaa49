"""
Dealer Query
============

Natural-language questions about dealer inventory, answered through a
verified SQL pipeline.
"""

from dealer_query.models import (
    Aggregate,
    AggregateFunction,
    Answer,
    AnswerType,
    AuditEntry,
    ConversationTurn,
    Filter,
    FilterOperator,
    Intent,
    LLMResponse,
    PipelineResult,
    ResultType,
    SafetyResult,
    SortDirection,
    SortSpec,
    SqlStatement,
    TaskType,
    Verification,
)
from dealer_query.schema import VEHICLES_SCHEMA, SchemaDescriptor
from dealer_query.diagnostics import ErrorKind, FallbackEvent, LoggingObserver
from dealer_query.exceptions import (
    DealerQueryError,
    ExecutionError,
    GenerationError,
    MalformedOutputError,
)
from dealer_query.stages import (
    AnswerComposer,
    IntentExtractor,
    QuerySafetyFilter,
    QuerySynthesizer,
    ResultVerifier,
)
from dealer_query.executor import QueryExecutor, SQLiteExecutor
from dealer_query.history import ConversationStore
from dealer_query.pipeline import QueryPipeline
from dealer_query.llm import LLMInterface, MockLLM, OpenAILLM

__version__ = "0.1.0"

__all__ = [
    # Models
    "TaskType",
    "FilterOperator",
    "AggregateFunction",
    "SortDirection",
    "ResultType",
    "AnswerType",
    "Filter",
    "Aggregate",
    "SortSpec",
    "Intent",
    "ConversationTurn",
    "SqlStatement",
    "SafetyResult",
    "Verification",
    "Answer",
    "AuditEntry",
    "PipelineResult",
    "LLMResponse",
    # Schema
    "SchemaDescriptor",
    "VEHICLES_SCHEMA",
    # Diagnostics
    "ErrorKind",
    "FallbackEvent",
    "LoggingObserver",
    # Errors
    "DealerQueryError",
    "GenerationError",
    "MalformedOutputError",
    "ExecutionError",
    # Stages
    "IntentExtractor",
    "QuerySynthesizer",
    "QuerySafetyFilter",
    "ResultVerifier",
    "AnswerComposer",
    # Pipeline
    "QueryPipeline",
    "QueryExecutor",
    "SQLiteExecutor",
    "ConversationStore",
    # LLM
    "LLMInterface",
    "MockLLM",
    "OpenAILLM",
]
