"""
Query Pipeline
==============

Orchestrates the stages that turn a dealer question into an answer.
"""

import time
from datetime import datetime, timezone
from typing import Sequence

import structlog
from opentelemetry import trace

from dealer_query.diagnostics import (
    DiagnosticsObserver,
    ErrorKind,
    FallbackEvent,
    LoggingObserver,
)
from dealer_query.exceptions import ExecutionError
from dealer_query.executor import QueryExecutor
from dealer_query.llm.base import LLMInterface
from dealer_query.models import (
    AuditEntry,
    ConversationTurn,
    PipelineResult,
    Row,
    SqlStatement,
)
from dealer_query.schema import VEHICLES_SCHEMA, SchemaDescriptor
from dealer_query.stages import (
    AnswerComposer,
    IntentExtractor,
    QuerySafetyFilter,
    QuerySynthesizer,
    ResultVerifier,
)

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class QueryPipeline:
    """
    Runs one question through every stage.

    The pipeline:
    1. Extracts an intent, carrying filters over from earlier turns
    2. Synthesizes a statement from the intent
    3. Gates the statement; a rejected one is replaced by the safe default
    4. Executes it; execution failures become an empty row set
    5. Verifies the rows against the intent
    6. Composes the dealer-facing answer

    No step raises to the caller. Every step is recorded in the audit trail.
    Per-question state lives in locals, so one instance serves concurrent
    callers.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        llm: LLMInterface | None = None,
        schema: SchemaDescriptor | None = None,
        observer: DiagnosticsObserver | None = None,
        use_generation: bool = False,
        use_review: bool = False,
        use_rephrasing: bool = False,
        default_limit: int = 10,
        max_limit: int = 100,
        carryover_turns: int = 1,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            executor: Execution service for safe statements
            llm: Generation service; heuristics and templates are used without one
            schema: Schema descriptor shared by every stage
            observer: Receives every fallback event
            use_generation: Let the model write SQL instead of the builder
            use_review: Merge a model review into verification
            use_rephrasing: Let the model rephrase composed answers
            default_limit: Row limit when a question names none
            max_limit: Upper bound for any list query
            carryover_turns: How many earlier turns an elliptical question may reach
        """
        self.executor = executor
        self.schema = schema or VEHICLES_SCHEMA
        self.observer = observer or LoggingObserver()

        stage_args = {"llm": llm, "schema": self.schema, "observer": self.observer}
        self.extractor = IntentExtractor(
            **stage_args, default_limit=default_limit, carryover_turns=carryover_turns
        )
        self.synthesizer = QuerySynthesizer(
            **stage_args, use_generation=use_generation, max_limit=max_limit
        )
        self.safety_filter = QuerySafetyFilter(self.schema)
        self.verifier = ResultVerifier(**stage_args, use_review=use_review)
        self.composer = AnswerComposer(**stage_args, use_rephrasing=use_rephrasing)

    @staticmethod
    def _log_audit(
        audit_trail: list[AuditEntry], step: str, input_data: dict, output_data: dict
    ) -> None:
        """Add entry to audit trail."""
        audit_trail.append(
            AuditEntry(
                timestamp=datetime.now(timezone.utc).isoformat(),
                step=step,
                input_data=input_data,
                output_data=output_data,
            )
        )

    def _report(self, stage: str, kind: ErrorKind, message: str) -> None:
        try:
            self.observer.record(FallbackEvent(stage=stage, kind=kind, message=message))
        except Exception:
            logger.exception("observer_failed", stage=stage)

    def ask(
        self, question: str, history: Sequence[ConversationTurn] | None = None
    ) -> PipelineResult:
        """
        Main entry point: answer a dealer question.

        Args:
            question: Free-text question
            history: Earlier turns of the conversation, oldest first

        Returns:
            PipelineResult holding the answer and every intermediate value
        """
        audit_trail: list[AuditEntry] = []
        history = list(history or [])
        started = time.perf_counter()

        with tracer.start_as_current_span("dealer_query.ask") as root:
            root.set_attribute("question.length", len(question))
            root.set_attribute("history.turns", len(history))

            with tracer.start_as_current_span("dealer_query.intent") as span:
                intent = self.extractor.extract(question, history)
                span.set_attribute("intent.task", intent.task.value)
                span.set_attribute("intent.filters", len(intent.filters))
            self._log_audit(
                audit_trail,
                "intent_extraction",
                {"question": question, "history_turns": len(history)},
                intent.to_dict(),
            )

            with tracer.start_as_current_span("dealer_query.synthesis"):
                statement = self.synthesizer.synthesize(intent)
            self._log_audit(
                audit_trail, "sql_synthesis", {"task": intent.task.value}, statement.to_dict()
            )

            with tracer.start_as_current_span("dealer_query.safety") as span:
                safety = self.safety_filter.validate(statement.sql)
                span.set_attribute("safety.valid", safety.valid)
            self._log_audit(
                audit_trail,
                "safety_check",
                {"sql": statement.sql},
                {"valid": safety.valid, "violations": list(safety.violations)},
            )
            if not safety.valid:
                self._report(self.safety_filter.name, ErrorKind.SCHEMA_VIOLATION, safety.error or "")
                statement = SqlStatement.safe_default(intent, error=safety.error)

            with tracer.start_as_current_span("dealer_query.execution") as span:
                rows, execution_error = self._execute(statement)
                span.set_attribute("rows.count", len(rows))
            self._log_audit(
                audit_trail,
                "execution",
                {"sql": statement.sql},
                {"row_count": len(rows), "error": execution_error},
            )

            with tracer.start_as_current_span("dealer_query.verification") as span:
                verification = self.verifier.verify(question, intent, statement.sql, rows)
                span.set_attribute("verification.valid", verification.valid)
                span.set_attribute("verification.confidence", verification.confidence)
            self._log_audit(
                audit_trail, "verification", {"sql": statement.sql}, verification.to_dict()
            )

            with tracer.start_as_current_span("dealer_query.composition"):
                answer = self.composer.compose(question, intent, statement.sql, rows, verification)
            if execution_error and not answer.error:
                answer.error = execution_error
            self._log_audit(
                audit_trail,
                "composition",
                {"row_count": len(rows)},
                {"answer_type": answer.answer_type.value, "data_count": answer.data_count},
            )

        logger.info(
            "pipeline_completed",
            task=intent.task.value,
            answer_type=answer.answer_type.value,
            row_count=len(rows),
            confidence=verification.confidence,
            safety_valid=safety.valid,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        return PipelineResult(
            answer=answer,
            intent=intent,
            statement=statement,
            safety=safety,
            verification=verification,
            rows=rows,
            audit_trail=audit_trail,
            execution_error=execution_error,
        )

    def _execute(self, statement: SqlStatement) -> tuple[list[Row], str | None]:
        try:
            return self.executor.execute(statement), None
        except Exception as e:
            kind = ErrorKind.EXECUTION_FAILURE if isinstance(e, ExecutionError) else ErrorKind.INTERNAL_ERROR
            message = str(e) or type(e).__name__
            self._report("executor", kind, message)
            return [], message
