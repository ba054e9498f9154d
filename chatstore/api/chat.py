"""Chat endpoints: send a message and read the active transcript."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from chatstore.agent.pipeline import MessagePipeline
from chatstore.dependencies import get_pipeline, get_session_store
from chatstore.errors import EmptyMessageError
from chatstore.memory.session_store import SessionStore
from chatstore.models.messages import ChatRequest, ChatResponse, Message

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=ChatResponse)
async def send_message(
    payload: ChatRequest,
    pipeline: MessagePipeline = Depends(get_pipeline),
    store: SessionStore = Depends(get_session_store),
) -> ChatResponse:
    """Run one user message through the pipeline.

    Targets the active session, creating one when none is active. The reply
    is appended after the user message; a backend failure comes back as an
    assistant message with ``is_error`` set.
    """
    try:
        result = await pipeline.send(payload.content)
    except EmptyMessageError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    session = store.get_session(result.session_id)
    return ChatResponse(
        session_id=result.session_id,
        session_name=session.name if session else "",
        created=result.created,
        renamed=result.renamed,
        discarded=result.discarded,
        user_message=result.user_message,
        assistant_message=result.assistant_message,
    )


@router.get("/messages", response_model=list[Message])
async def active_messages(
    store: SessionStore = Depends(get_session_store),
) -> list[Message]:
    """Transcript of the active session (empty when nothing is active)."""
    return store.active_messages
