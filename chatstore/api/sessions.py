"""Session management endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from chatstore.agent.pipeline import MessagePipeline
from chatstore.dependencies import get_pipeline, get_session_store
from chatstore.errors import MessageNotFoundError, SessionNotFoundError
from chatstore.memory.session_store import SessionStore
from chatstore.models.messages import EditRequest, Message
from chatstore.models.sessions import (
    SessionHistoryResponse,
    SessionListResponse,
    SessionSummary,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    store: SessionStore = Depends(get_session_store),
) -> SessionListResponse:
    """Return all sessions, newest first, with the active id."""
    active_id = store.active_session_id
    summaries = [
        SessionSummary(
            id=s.id,
            name=s.name,
            message_count=s.message_count,
            is_active=s.id == active_id,
        )
        for s in store.sessions
    ]
    return SessionListResponse(
        sessions=summaries, active_session_id=active_id, total=len(summaries)
    )


@router.post("", status_code=201)
async def create_session(
    store: SessionStore = Depends(get_session_store),
) -> dict[str, str]:
    """Start a new empty session and make it active."""
    return {"session_id": store.create_session()}


@router.post("/{session_id}/select")
async def select_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> dict[str, str]:
    if not store.select_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "selected", "session_id": session_id}


@router.get("/{session_id}/history", response_model=SessionHistoryResponse)
async def get_session_history(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> SessionHistoryResponse:
    """Return the full message history for a session."""
    session = store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionHistoryResponse(
        session_id=session.id, name=session.name, messages=session.messages
    )


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    pipeline: MessagePipeline = Depends(get_pipeline),
) -> dict[str, str | None]:
    """Delete a session, dropping any reply still in flight for it."""
    if pipeline.cancel(session_id):
        logger.info("Cancelled pending reply for session %s", session_id)
    if not store.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {
        "status": "deleted",
        "session_id": session_id,
        "active_session_id": store.active_session_id,
    }


@router.patch("/{session_id}/messages/{message_id}", response_model=Message)
async def edit_message(
    session_id: str,
    message_id: str,
    payload: EditRequest,
    store: SessionStore = Depends(get_session_store),
) -> Message:
    """Replace the text of one message in place."""
    if not payload.text.strip():
        raise HTTPException(status_code=422, detail="Message text is empty")
    try:
        message = store.find_message(session_id, message_id)
    except (SessionNotFoundError, MessageNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    if not store.edit_message(session_id, message_id, payload.text):
        raise HTTPException(status_code=404, detail="Message no longer exists")
    return message
