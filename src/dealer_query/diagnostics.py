"""
Diagnostics
===========

Structured fallback events. Each stage keeps its always-succeeds contract
but reports every fallback to an injected observer so failure rates can be
measured.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

import structlog

from dealer_query.exceptions import GenerationError, MalformedOutputError

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    GENERATION_FAILURE = "generation_failure"
    MALFORMED_OUTPUT = "malformed_output"
    SCHEMA_VIOLATION = "schema_violation"
    EXECUTION_FAILURE = "execution_failure"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class FallbackEvent:
    """A stage substituted its fallback value."""

    stage: str
    kind: ErrorKind
    message: str
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


class DiagnosticsObserver(Protocol):
    def record(self, event: FallbackEvent) -> None:
        ...


def classify_error(error: BaseException) -> ErrorKind:
    """Map an exception caught at a stage boundary to an error kind."""
    if isinstance(error, MalformedOutputError):
        return ErrorKind.MALFORMED_OUTPUT
    if isinstance(error, (GenerationError, TimeoutError)):
        return ErrorKind.GENERATION_FAILURE
    return ErrorKind.INTERNAL_ERROR


class LoggingObserver:
    """Default observer: one structured warning per fallback."""

    def record(self, event: FallbackEvent) -> None:
        logger.warning(
            "stage_fallback",
            stage=event.stage,
            error_kind=event.kind.value,
            error=event.message,
        )


class CompositeObserver:
    """Fans an event out to several observers."""

    def __init__(self, observers: list[DiagnosticsObserver]) -> None:
        self.observers = observers

    def record(self, event: FallbackEvent) -> None:
        for observer in self.observers:
            observer.record(event)
