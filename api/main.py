"""
FastAPI Application
===================

Main FastAPI application for the dealer query service.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.middleware.telemetry import TelemetryMiddleware
from api.routes.health import router as health_router
from api.routes.query import router as query_router
from api.schemas import ErrorResponse
from dealer_query.config import Settings, get_settings
from dealer_query.diagnostics import CompositeObserver, LoggingObserver
from dealer_query.executor import SQLiteExecutor
from dealer_query.history import ConversationStore
from dealer_query.llm import LLMInterface, MockLLM, OpenAILLM
from dealer_query.pipeline import QueryPipeline
from dealer_query.sample_data import SAMPLE_VEHICLES
from observability.logging_config import get_logger, setup_logging
from observability.metrics import MetricsObserver, metrics_endpoint, setup_metrics
from observability.tracing import setup_tracing

# Canned intents for the offline "mock" provider
DEMO_INTENTS = {
    "honda": [
        '{"task": "count", "filters": [{"field": "make", "operator": "=", "value": "Honda"}], '
        '"aggregates": [{"function": "COUNT", "field": "*"}], "limit": 10}'
    ],
    "types of jeep": [
        '{"task": "distinct", "filters": [{"field": "make", "operator": "=", "value": "Jeep"}], '
        '"aggregates": [{"function": "DISTINCT", "field": "body_style"}]}'
    ],
    "average price": [
        '{"task": "aggregate", "aggregates": [{"function": "AVG", "field": "price_cents"}]}'
    ],
}


def create_llm(settings: Settings) -> LLMInterface | None:
    """Generation service for the configured provider; None runs offline heuristics."""
    if settings.llm_provider == "openai":
        return OpenAILLM(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            timeout=settings.llm_timeout_seconds,
        )
    if settings.llm_provider == "mock":
        return MockLLM(responses=DEMO_INTENTS)
    return None


def create_pipeline(
    settings: Settings, llm: LLMInterface | None = None
) -> tuple[QueryPipeline, SQLiteExecutor]:
    """Create and configure the pipeline and its executor."""
    executor = SQLiteExecutor(settings.database_path)
    if settings.seed_sample_data and executor.is_empty():
        executor.load(SAMPLE_VEHICLES)

    pipeline = QueryPipeline(
        executor=executor,
        llm=llm if llm is not None else create_llm(settings),
        observer=CompositeObserver([LoggingObserver(), MetricsObserver()]),
        use_generation=settings.llm_sql_generation,
        use_review=settings.llm_review,
        use_rephrasing=settings.llm_composition,
        default_limit=settings.default_limit,
        max_limit=settings.max_limit,
        carryover_turns=settings.carryover_turns,
    )
    return pipeline, executor


def create_app(settings: Settings | None = None, llm: LLMInterface | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Service settings (default: read from the environment)
        llm: Generation service overriding the configured provider
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        setup_logging()
        logger = get_logger(__name__)
        logger.info(
            "api_starting",
            version=__version__,
            llm_provider=settings.llm_provider if llm is None else type(llm).__name__,
        )

        app.state.pipeline, app.state.executor = create_pipeline(settings, llm)
        app.state.conversations = ConversationStore(max_turns=settings.history_max_turns)

        yield

        app.state.executor.close()
        logger.info("api_stopped")

    app = FastAPI(
        title="Dealer Query API",
        description=(
            "Answers natural-language inventory questions through a verified "
            "SQL pipeline."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(query_router)

    setup_tracing(app, version=__version__)
    setup_metrics(app, version=__version__, environment=os.getenv("ENVIRONMENT", "development"))
    app.add_route("/metrics", metrics_endpoint)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        request_id = getattr(request.state, "request_id", None)
        get_logger(__name__).exception("unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                request_id=request_id,
            ).model_dump(),
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
