"""Durable key/value persistence for session state.

The adapter is the only component that touches durable storage. It keeps the
layout a browser client would put in local storage, two string keys::

    sessions                -> JSON array of sessions
    last_active_session_id  -> plain session id (removed when nothing is active)

Each session is serialized as::

    {
        "id": "chat-1760889600000",
        "name": "hello there",
        "messages": [
            {
                "id": "msg-1760889600001-user",
                "text": "hello there",
                "sender": "user",
                "timestamp": "2026-10-19T16:00:00.001Z",
                "is_error": false
            }
        ]
    }
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from chatstore.errors import StorageError
from chatstore.models.sessions import Session, StoreState

logger = logging.getLogger(__name__)

DEFAULT_SESSIONS_KEY = "sessions"
DEFAULT_ACTIVE_KEY = "last_active_session_id"

_SESSIONS = TypeAdapter(list[Session])


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Dict-backed storage, used as a fake in tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.writes = 0

    def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.writes += 1
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.writes += 1
        self.data.pop(key, None)


class JsonFileStorage:
    """All keys in one JSON object file, replaced atomically on every write."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise StorageError(f"Unexpected content in {self.path}")
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}

    def _read_for_write(self) -> dict[str, str]:
        # A corrupt file is overwritten rather than blocking every later save
        try:
            return self._read()
        except StorageError as exc:
            logger.warning("Replacing unreadable storage file: %s", exc)
            return {}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".tmp")
        except OSError as exc:
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as exc:
            Path(tmp).unlink(missing_ok=True)
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_for_write()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read_for_write()
        if key in data:
            del data[key]
            self._write(data)


class StorageAdapter:
    """Serializes ``StoreState`` to a key/value backend and back."""

    def __init__(
        self,
        backend: KeyValueStorage,
        *,
        sessions_key: str = DEFAULT_SESSIONS_KEY,
        active_key: str = DEFAULT_ACTIVE_KEY,
    ) -> None:
        self.backend = backend
        self.sessions_key = sessions_key
        self.active_key = active_key

    def load(self) -> StoreState:
        """Return the persisted state, or an empty state if none is usable."""
        try:
            raw_sessions = self.backend.get_item(self.sessions_key)
            raw_active = self.backend.get_item(self.active_key)
        except StorageError as exc:
            logger.warning("Storage unreadable, starting empty: %s", exc)
            return StoreState()

        if not raw_sessions:
            return StoreState()

        try:
            entries = json.loads(raw_sessions)
        except json.JSONDecodeError as exc:
            logger.warning("Persisted sessions are not valid JSON, starting empty: %s", exc)
            return StoreState()
        if not isinstance(entries, list):
            logger.warning("Persisted sessions are not a list, starting empty")
            return StoreState()

        sessions = [s for s in (self._parse_session(e) for e in entries) if s is not None]
        state = StoreState(sessions=sessions)

        if raw_active and state.find(raw_active) is not None:
            state.active_session_id = raw_active
        elif sessions:
            state.active_session_id = sessions[0].id

        logger.info(
            "Loaded %d session(s), active=%s", len(sessions), state.active_session_id
        )
        return state

    @staticmethod
    def _parse_session(entry: Any) -> Session | None:
        try:
            return Session.model_validate(entry)
        except ValidationError as exc:
            logger.warning("Skipping malformed session: %s", exc.errors()[:1])
            return None

    def save(self, state: StoreState) -> None:
        """Write sessions and the active id. Raises ``StorageError`` on failure."""
        payload = _SESSIONS.dump_json(state.sessions).decode("utf-8")
        self.backend.set_item(self.sessions_key, payload)
        if state.active_session_id:
            self.backend.set_item(self.active_key, state.active_session_id)
        else:
            self.backend.remove_item(self.active_key)
