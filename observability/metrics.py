"""
Prometheus Metrics
==================

Application metrics for monitoring and alerting.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

from dealer_query.diagnostics import FallbackEvent
from dealer_query.models import PipelineResult

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "dealer_query",
    "Dealer query application information",
    registry=REGISTRY,
)

# Question metrics
QUESTIONS_TOTAL = Counter(
    "dealer_query_questions_total",
    "Total number of questions answered",
    ["answer_type"],
    registry=REGISTRY,
)

PIPELINE_DURATION = Histogram(
    "dealer_query_pipeline_duration_seconds",
    "Question processing duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

VERIFICATION_CONFIDENCE = Histogram(
    "dealer_query_verification_confidence",
    "Verifier confidence per answered question",
    buckets=[0.1, 0.3, 0.5, 0.7, 0.8, 0.9, 1.0],
    registry=REGISTRY,
)

# Failure metrics
STAGE_FALLBACKS = Counter(
    "dealer_query_stage_fallbacks_total",
    "Stage fallbacks by stage and error kind",
    ["stage", "kind"],
    registry=REGISTRY,
)

SAFETY_REJECTIONS = Counter(
    "dealer_query_safety_rejections_total",
    "Statements rejected by the safety filter",
    registry=REGISTRY,
)

EXECUTION_FAILURES = Counter(
    "dealer_query_execution_failures_total",
    "Statements the execution service failed to run",
    registry=REGISTRY,
)

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=REGISTRY,
)

ACTIVE_QUESTIONS = Gauge(
    "dealer_query_active_questions",
    "Number of questions currently being processed",
    registry=REGISTRY,
)

ASK_PATH = "/api/v1/ask"


def setup_metrics(app: FastAPI, version: str = "0.1.0", environment: str = "development") -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        version: Application version reported in the info metric
        environment: Deployment environment reported in the info metric
    """
    APP_INFO.info({"version": version, "environment": environment})

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_ask_endpoint = request.url.path == ASK_PATH
        if is_ask_endpoint:
            ACTIVE_QUESTIONS.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_ask_endpoint:
                ACTIVE_QUESTIONS.dec()


def track_question_metrics(result: PipelineResult, duration_seconds: float) -> None:
    """
    Track metrics for an answered question.

    Args:
        result: Pipeline result for the question
        duration_seconds: Total processing time
    """
    QUESTIONS_TOTAL.labels(answer_type=result.answer.answer_type.value).inc()
    PIPELINE_DURATION.observe(duration_seconds)
    VERIFICATION_CONFIDENCE.observe(result.verification.confidence)

    if not result.safety.valid:
        SAFETY_REJECTIONS.inc()
    if result.execution_error:
        EXECUTION_FAILURES.inc()


class MetricsObserver:
    """Diagnostics observer that counts fallbacks by stage and kind."""

    def record(self, event: FallbackEvent) -> None:
        STAGE_FALLBACKS.labels(stage=event.stage, kind=event.kind.value).inc()


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    # Handle multiprocess mode if using gunicorn
    try:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        metrics = generate_latest(registry)
    except ValueError:
        metrics = generate_latest(REGISTRY)

    return Response(
        content=metrics,
        media_type=CONTENT_TYPE_LATEST,
    )
