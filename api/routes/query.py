"""
Query Routes
============

Question answering and conversation endpoints.
"""

import time
import uuid

import structlog
from fastapi import APIRouter, Depends, Request

from api.schemas import (
    AnswerResponse,
    AskRequest,
    AskResponse,
    AuditEntryResponse,
    ClearConversationResponse,
    ConversationResponse,
    ErrorResponse,
    SafetyResponse,
    TurnSchema,
    VerificationResponse,
)
from dealer_query.history import ConversationStore
from dealer_query.models import ConversationTurn
from dealer_query.pipeline import QueryPipeline
from observability.metrics import track_question_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Query"])


def get_pipeline(request: Request) -> QueryPipeline:
    """Dependency to get the configured pipeline from app state."""
    return request.app.state.pipeline


def get_store(request: Request) -> ConversationStore:
    return request.app.state.conversations


@router.post(
    "/ask",
    response_model=AskResponse,
    responses={
        422: {"description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Answer a dealer question",
    description="Takes an inventory question and returns a verified answer",
)
def ask(
    body: AskRequest,
    request: Request,
    pipeline: QueryPipeline = Depends(get_pipeline),
    store: ConversationStore = Depends(get_store),
) -> AskResponse:
    """
    Answer a question, continuing the session's conversation.

    The endpoint:
    1. Resolves prior turns from the request or the conversation store
    2. Runs the question through the pipeline
    3. Records the turn under the session
    4. Returns the answer with the statement, intent and verification
    """
    start_time = time.perf_counter()
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    session_id = body.session_id or str(uuid.uuid4())

    if body.history is not None:
        history = [ConversationTurn(question=t.question, answer=t.answer) for t in body.history]
    else:
        history = store.history(session_id)

    result = pipeline.ask(body.question, history)
    store.append(session_id, body.question, result.answer.answer)

    duration = time.perf_counter() - start_time
    track_question_metrics(result, duration)
    logger.info(
        "question_answered",
        session_id=session_id,
        answer_type=result.answer.answer_type.value,
        data_count=result.answer.data_count,
    )

    audit_trail = None
    if body.include_audit:
        audit_trail = [
            AuditEntryResponse(
                timestamp=entry.timestamp,
                step=entry.step,
                input_data=entry.input_data,
                output_data=entry.output_data,
            )
            for entry in result.audit_trail
        ]

    answer = result.answer
    verification = result.verification
    return AskResponse(
        answer=AnswerResponse(
            answer=answer.answer,
            answer_type=answer.answer_type.value,
            data_count=answer.data_count,
            summary=answer.summary,
            next_actions=answer.next_actions,
            evidence=answer.evidence,
            error=answer.error,
        ),
        sql=result.statement.sql,
        intent=result.intent.to_dict(),
        safety=SafetyResponse(valid=result.safety.valid, violations=list(result.safety.violations)),
        verification=VerificationResponse(
            valid=verification.valid,
            confidence=verification.confidence,
            issues=list(verification.issues),
            result_type=verification.result_type.value,
            suggested_fix=verification.suggested_fix,
            summary=verification.summary,
        ),
        rows=result.rows if body.include_rows else None,
        execution_error=result.execution_error,
        audit_trail=audit_trail,
        session_id=session_id,
        request_id=request_id,
        processing_time_ms=duration * 1000,
    )


@router.get(
    "/conversations/{session_id}",
    response_model=ConversationResponse,
    summary="Stored conversation turns",
)
async def get_conversation(
    session_id: str,
    store: ConversationStore = Depends(get_store),
) -> ConversationResponse:
    turns = store.history(session_id)
    return ConversationResponse(
        session_id=session_id,
        turns=[TurnSchema(question=t.question, answer=t.answer) for t in turns],
    )


@router.delete(
    "/conversations/{session_id}",
    response_model=ClearConversationResponse,
    summary="Forget a conversation",
)
async def clear_conversation(
    session_id: str,
    store: ConversationStore = Depends(get_store),
) -> ClearConversationResponse:
    cleared = store.clear(session_id)
    logger.info("conversation_cleared", session_id=session_id, existed=cleared)
    return ClearConversationResponse(session_id=session_id, cleared=cleared)
