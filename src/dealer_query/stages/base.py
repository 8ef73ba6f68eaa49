"""
Base Stage
==========

Shared plumbing for pipeline stages: schema, generation service and
fallback reporting.
"""

from abc import ABC, abstractmethod

import structlog

from dealer_query.diagnostics import (
    DiagnosticsObserver,
    ErrorKind,
    FallbackEvent,
    LoggingObserver,
    classify_error,
)
from dealer_query.llm.base import LLMInterface, parse_json_object
from dealer_query.schema import VEHICLES_SCHEMA, SchemaDescriptor

logger = structlog.get_logger(__name__)


class PipelineStage(ABC):
    """
    Base class for all stages.

    A stage never lets an exception escape its public method. Subclasses
    catch at the boundary and call ``_fallback`` which reports the event and
    returns nothing; the subclass then builds its own fallback value.
    """

    SYSTEM_PROMPT: str = ""
    TEMPERATURE: float = 0.1
    MAX_TOKENS: int = 300

    def __init__(
        self,
        llm: LLMInterface | None = None,
        schema: SchemaDescriptor | None = None,
        observer: DiagnosticsObserver | None = None,
    ) -> None:
        self.llm = llm
        self.schema = schema or VEHICLES_SCHEMA
        self.observer = observer or LoggingObserver()

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage name used in diagnostics."""
        pass

    def _complete(self, prompt: str) -> str:
        """Single blocking call to the generation service."""
        response = self.llm.generate(
            prompt,
            system_prompt=self.SYSTEM_PROMPT,
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return response.content

    def _complete_json(self, prompt: str) -> dict:
        return parse_json_object(self._complete(prompt))

    def _fallback(self, error: BaseException | str, kind: ErrorKind | None = None) -> str:
        """Report a fallback and return the error message to tag the value with."""
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
            kind = kind or classify_error(error)
        else:
            message = error
            kind = kind or ErrorKind.INTERNAL_ERROR

        event = FallbackEvent(stage=self.name, kind=kind, message=message)
        try:
            self.observer.record(event)
        except Exception:
            logger.exception("observer_failed", stage=self.name)
        return message
