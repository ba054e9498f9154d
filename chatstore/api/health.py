"""Health check endpoint for the session store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends

from chatstore.agent.pipeline import MessagePipeline
from chatstore.config import Settings, get_settings
from chatstore.dependencies import get_pipeline, get_session_store
from chatstore.memory.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _check_storage(settings: Settings) -> dict[str, Any]:
    """Report whether the state file's directory is usable."""
    directory = Path(settings.storage_path).expanduser().parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Storage health check failed: %s", exc)
        return {"status": "unhealthy", "error": str(exc)}
    return {"status": "healthy", "path": settings.storage_path}


def _check_store(store: SessionStore, pipeline: MessagePipeline) -> dict[str, Any]:
    active_id = store.active_session_id
    if active_id is not None and store.get_session(active_id) is None:
        return {"status": "unhealthy", "error": f"dangling active id {active_id}"}
    return {
        "status": "healthy",
        "sessions": len(store.sessions),
        "active_session_id": active_id,
        "pending_replies": len(pipeline.pending),
    }


@router.get("")
async def health_check(
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    pipeline: MessagePipeline = Depends(get_pipeline),
) -> dict[str, Any]:
    """Return aggregate health of storage and the in-memory store."""
    services = {
        "storage": _check_storage(settings),
        "store": _check_store(store, pipeline),
    }

    overall = (
        "healthy"
        if all(s["status"] == "healthy" for s in services.values())
        else "degraded"
    )

    return {
        "status": overall,
        "services": services,
    }
