"""Memory module - session state owner and its key/value persistence."""

from .session_store import SessionStore
from .storage import InMemoryStorage, JsonFileStorage, StorageAdapter

__all__ = ["SessionStore", "StorageAdapter", "InMemoryStorage", "JsonFileStorage"]
