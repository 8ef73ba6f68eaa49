"""
Unit Tests for Diagnostics
==========================
"""

import pytest

from dealer_query.diagnostics import (
    CompositeObserver,
    ErrorKind,
    FallbackEvent,
    classify_error,
)
from dealer_query.exceptions import ExecutionError, GenerationError, MalformedOutputError


class TestClassifyError:
    """Tests for mapping exceptions to error kinds."""

    @pytest.mark.parametrize(
        "error,kind",
        [
            (MalformedOutputError("truncated"), ErrorKind.MALFORMED_OUTPUT),
            (GenerationError("503"), ErrorKind.GENERATION_FAILURE),
            (TimeoutError("slow"), ErrorKind.GENERATION_FAILURE),
            (ExecutionError("locked"), ErrorKind.INTERNAL_ERROR),
            (KeyError("task"), ErrorKind.INTERNAL_ERROR),
        ],
    )
    def test_classify(self, error: BaseException, kind: ErrorKind) -> None:
        assert classify_error(error) == kind


class TestCompositeObserver:
    def test_fans_out(self, observer) -> None:
        second = type(observer)()
        event = FallbackEvent(stage="intent_extractor", kind=ErrorKind.GENERATION_FAILURE, message="x")
        CompositeObserver([observer, second]).record(event)
        assert observer.events == [event]
        assert second.events == [event]
