"""
Exceptions
==========

Errors raised inside the pipeline. Stages catch these at their boundary and
turn them into fallback values; they never reach the caller of a stage.
"""


class DealerQueryError(Exception):
    """Base class for pipeline errors."""


class GenerationError(DealerQueryError):
    """The generation service failed or timed out."""


class MalformedOutputError(GenerationError):
    """The generation service answered with empty, truncated or non-JSON text."""


class ExecutionError(DealerQueryError):
    """The SQL execution service failed."""
