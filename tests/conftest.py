"""Shared test fixtures for the chat session store."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chatstore.agent.pipeline import MessagePipeline
from chatstore.config import Settings, get_settings
from chatstore.dependencies import get_pipeline, get_session_store
from chatstore.main import app
from chatstore.memory.session_store import SessionStore
from chatstore.memory.storage import InMemoryStorage, StorageAdapter


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated from the developer's environment and state file."""
    return Settings(
        storage_path=str(tmp_path / "state.json"),
        auto_create_policy="no_active",
        response_delay_ms=500,
    )


@pytest.fixture
def backend() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def adapter(backend: InMemoryStorage) -> StorageAdapter:
    return StorageAdapter(backend)


@pytest.fixture
def store(adapter: StorageAdapter, test_settings: Settings) -> SessionStore:
    return SessionStore(adapter, test_settings)


@pytest.fixture
def pipeline(store: SessionStore, test_settings: Settings) -> MessagePipeline:
    return MessagePipeline(store, settings=test_settings)


@pytest_asyncio.fixture
async def client(
    store: SessionStore,
    pipeline: MessagePipeline,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints against in-memory state."""
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_settings] = lambda: test_settings
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
