"""
Structured Logging Configuration
================================

structlog setup shared by the API and the pipeline. Pipeline stages log
through ``structlog.get_logger``; this module decides how those events are
rendered and routes standard-library loggers through the same chain.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "dealer-query"

# Chatty libraries kept at WARNING
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai")


def _add_service(service: str) -> Processor:
    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def setup_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str = SERVICE_NAME,
) -> None:
    """
    Configure structured logging for the service.

    Args:
        level: Log level (default: LOG_LEVEL env or INFO)
        json_format: Render JSON lines (default: LOG_FORMAT=json or ENVIRONMENT=production)
        service: Value of the ``service`` key stamped on every event
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_format is None:
        json_format = (
            os.getenv("LOG_FORMAT", "").lower() == "json"
            or os.getenv("ENVIRONMENT", "development") == "production"
        )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service(service),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind values such as ``request_id`` to every later event of this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
