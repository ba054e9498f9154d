"""Tests for the session and chat endpoints."""

import pytest
from httpx import AsyncClient

from chatstore.memory.session_store import SessionStore
from chatstore.models.messages import Message, Sender


@pytest.mark.asyncio
async def test_send_first_message_creates_session(client: AsyncClient) -> None:
    response = await client.post("/api/chat", json={"content": "hello there"})
    assert response.status_code == 200

    data = response.json()
    assert data["created"] is True
    assert data["renamed"] is True
    assert data["session_name"] == "hello there"
    assert data["user_message"]["sender"] == "user"
    assert data["assistant_message"]["text"] == "hello there"

    transcript = (await client.get("/api/chat/messages")).json()
    assert [m["sender"] for m in transcript] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_send_blank_message_is_rejected(
    client: AsyncClient, store: SessionStore
) -> None:
    response = await client.post("/api/chat", json={"content": "   "})
    assert response.status_code == 422
    assert store.sessions == []


@pytest.mark.asyncio
async def test_list_create_select_sessions(client: AsyncClient) -> None:
    first = (await client.post("/api/sessions")).json()["session_id"]
    created = await client.post("/api/sessions")
    assert created.status_code == 201
    second = created.json()["session_id"]

    listing = (await client.get("/api/sessions")).json()
    assert listing["total"] == 2
    assert [s["id"] for s in listing["sessions"]] == [second, first]
    assert listing["active_session_id"] == second

    response = await client.post(f"/api/sessions/{first}/select")
    assert response.status_code == 200
    listing = (await client.get("/api/sessions")).json()
    assert listing["active_session_id"] == first
    assert [s["is_active"] for s in listing["sessions"]] == [False, True]


@pytest.mark.asyncio
async def test_select_unknown_session_returns_404(client: AsyncClient) -> None:
    response = await client.post("/api/sessions/chat-missing/select")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_session_reassigns_active(client: AsyncClient) -> None:
    older = (await client.post("/api/sessions")).json()["session_id"]
    newer = (await client.post("/api/sessions")).json()["session_id"]

    response = await client.delete(f"/api/sessions/{newer}")
    assert response.status_code == 200
    assert response.json()["active_session_id"] == older

    response = await client.delete(f"/api/sessions/{older}")
    assert response.json()["active_session_id"] is None
    assert (await client.get("/api/chat/messages")).json() == []

    response = await client.delete(f"/api/sessions/{older}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_session_history(client: AsyncClient, store: SessionStore) -> None:
    await client.post("/api/chat", json={"content": "what is the weather"})
    sid = store.active_session_id

    response = await client.get(f"/api/sessions/{sid}/history")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "what is the weather"
    assert len(data["messages"]) == 2

    response = await client.get("/api/sessions/chat-missing/history")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_edit_message_endpoint(client: AsyncClient, store: SessionStore) -> None:
    sid = store.create_session()
    reply = Message.create(Sender.ASSISTANT, "draft")
    store.append_messages(sid, [reply])

    response = await client.patch(
        f"/api/sessions/{sid}/messages/{reply.id}", json={"text": "fixed"}
    )
    assert response.status_code == 200
    assert response.json()["text"] == "fixed"
    assert response.json()["id"] == reply.id

    response = await client.patch(
        f"/api/sessions/{sid}/messages/m99", json={"text": "fixed"}
    )
    assert response.status_code == 404

    response = await client.patch(
        f"/api/sessions/{sid}/messages/{reply.id}", json={"text": "  "}
    )
    assert response.status_code == 422
    assert store.find_message(sid, reply.id).text == "fixed"


@pytest.mark.asyncio
async def test_edit_that_store_refuses_returns_404(
    client: AsyncClient, store: SessionStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    sid = store.create_session()
    reply = Message.create(Sender.ASSISTANT, "draft")
    store.append_messages(sid, [reply])
    monkeypatch.setattr(store, "edit_message", lambda *args: False)

    response = await client.patch(
        f"/api/sessions/{sid}/messages/{reply.id}", json={"text": "fixed"}
    )

    assert response.status_code == 404
    assert store.find_message(sid, reply.id).text == "draft"
