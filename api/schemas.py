"""
API Schemas
===========

Pydantic models for API request/response validation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TurnSchema(BaseModel):
    """A prior question/answer exchange."""

    question: str = Field(..., min_length=1, max_length=1000)
    answer: str = Field(default="", max_length=10000)


class AskRequest(BaseModel):
    """Request body for a dealer question."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Natural language question about inventory",
        examples=["how many hondas do we have under $30k?"],
    )
    session_id: str | None = Field(
        default=None,
        max_length=128,
        description="Conversation to continue; a new one is started when omitted",
    )
    history: list[TurnSchema] | None = Field(
        default=None,
        max_length=50,
        description="Explicit prior turns; overrides the stored conversation",
    )
    include_rows: bool = Field(
        default=True,
        description="Include the result rows in the response",
    )
    include_audit: bool = Field(
        default=False,
        description="Include full audit trail in response",
    )


class AnswerTypeEnum(str, Enum):
    COUNT = "count"
    LIST = "list"
    DISTINCT = "distinct"
    AGGREGATE = "aggregate"


class ResultTypeEnum(str, Enum):
    COUNT = "count"
    LIST = "list"
    DISTINCT = "distinct"
    AGGREGATE = "aggregate"
    UNKNOWN = "unknown"


class VerificationResponse(BaseModel):
    """Verifier outcome for the executed statement."""

    valid: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    issues: list[str] = Field(default_factory=list)
    result_type: ResultTypeEnum
    suggested_fix: str | None = None
    summary: str = ""


class AnswerResponse(BaseModel):
    """Dealer-facing answer."""

    answer: str = Field(..., description="Natural language answer")
    answer_type: AnswerTypeEnum
    data_count: int
    summary: str
    next_actions: list[str] = Field(default_factory=list)
    evidence: str
    error: str | None = Field(None, description="Set when a stage fell back")


class SafetyResponse(BaseModel):
    valid: bool
    violations: list[str] = Field(default_factory=list)


class AuditEntryResponse(BaseModel):
    """Single audit trail entry."""

    timestamp: str = Field(..., description="ISO 8601 timestamp")
    step: str = Field(..., description="Step identifier")
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: dict[str, Any] = Field(default_factory=dict)


class AskResponse(BaseModel):
    """Response body for a dealer question."""

    answer: AnswerResponse
    sql: str = Field(..., description="Statement that was executed")
    intent: dict[str, Any] = Field(..., description="Extracted intent")
    safety: SafetyResponse
    verification: VerificationResponse
    rows: list[dict[str, Any]] | None = Field(None, description="Result rows (if requested)")
    execution_error: str | None = None
    audit_trail: list[AuditEntryResponse] | None = Field(
        None,
        description="Full audit trail (if requested)",
    )
    session_id: str = Field(..., description="Conversation the turn was recorded in")
    request_id: str = Field(..., description="Unique request identifier")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class ConversationResponse(BaseModel):
    """Stored turns of a conversation, oldest first."""

    session_id: str
    turns: list[TurnSchema] = Field(default_factory=list)


class ClearConversationResponse(BaseModel):
    session_id: str
    cleared: bool


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready to handle requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    request_id: str | None = Field(None, description="Request ID if available")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
