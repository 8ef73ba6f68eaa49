"""
Observability Module
====================

Metrics, tracing, and structured logging for the dealer query service.
"""

from observability.metrics import MetricsObserver, setup_metrics, track_question_metrics
from observability.tracing import setup_tracing
from observability.logging_config import setup_logging, get_logger

__all__ = [
    "MetricsObserver",
    "setup_metrics",
    "track_question_metrics",
    "setup_tracing",
    "setup_logging",
    "get_logger",
]
