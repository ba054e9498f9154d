"""Dependency injection providers for FastAPI."""

from chatstore.agent.pipeline import MessagePipeline
from chatstore.agent.responders import build_responder
from chatstore.config import settings
from chatstore.memory.session_store import SessionStore
from chatstore.memory.storage import JsonFileStorage, StorageAdapter

# Global singleton instances (one writer for the whole process)
_session_store: SessionStore | None = None
_pipeline: MessagePipeline | None = None


def get_session_store() -> SessionStore:
    """Return singleton SessionStore instance, loading persisted state once."""
    global _session_store
    if _session_store is None:
        adapter = StorageAdapter(
            JsonFileStorage(settings.storage_path),
            sessions_key=settings.sessions_key,
            active_key=settings.active_session_key,
        )
        _session_store = SessionStore(adapter, settings)
    return _session_store


def get_pipeline() -> MessagePipeline:
    """Return singleton MessagePipeline bound to the session store."""
    global _pipeline
    if _pipeline is None:
        _pipeline = MessagePipeline(
            get_session_store(), build_responder(settings), settings
        )
    return _pipeline
