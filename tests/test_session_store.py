"""
Tests for session record storage backends.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.config import Settings
from app.domain.schemas import UserSession
from app.services.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    create_session_store,
)

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


def make_session(session_id="sess-1") -> UserSession:
    return UserSession(
        id=session_id,
        user_email="jane@example.com",
        memberstack_id="mem_1",
        active_plans=["pln_essentials-vb1k04zy"],
        best_plan_id="pln_essentials-vb1k04zy",
        created_at=NOW,
        last_accessed=NOW,
        expires_at=NOW + timedelta(hours=24),
    )


@pytest.mark.asyncio
async def test_redis_store_writes_json_with_ttl():
    client = MagicMock()
    client.set = AsyncMock()
    store = RedisSessionStore(client)

    await store.set("sess-1", make_session(), 86400)

    key, payload = client.set.call_args[0]
    assert key == "session:sess-1"
    assert client.set.call_args.kwargs["ex"] == 86400
    assert '"userEmail":"jane@example.com"' in payload
    assert '"expiresAt":"2025-03-11T09:00:00Z"' in payload


@pytest.mark.asyncio
async def test_redis_store_reads_records_back():
    session = make_session()
    client = MagicMock()
    client.get = AsyncMock(return_value=session.model_dump_json(by_alias=True))
    store = RedisSessionStore(client)

    loaded = await store.get("sess-1")

    client.get.assert_awaited_once_with("session:sess-1")
    assert loaded == session


@pytest.mark.asyncio
async def test_redis_store_missing_and_delete():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.delete = AsyncMock()
    store = RedisSessionStore(client)

    assert await store.get("nope") is None
    await store.delete("sess-1")
    client.delete.assert_awaited_once_with("session:sess-1")


@pytest.mark.asyncio
async def test_in_memory_store_returns_copies():
    store = InMemorySessionStore()
    await store.set("sess-1", make_session(), 60)

    loaded = await store.get("sess-1")
    loaded.active_plans.append("pln_other")

    assert (await store.get("sess-1")).active_plans == ["pln_essentials-vb1k04zy"]
    await store.delete("sess-1")
    await store.delete("sess-1")
    assert len(store) == 0


def test_store_selection_follows_kv_url():
    assert isinstance(create_session_store(Settings(kv_url="")), InMemorySessionStore)
    assert isinstance(
        create_session_store(Settings(kv_url="redis://localhost:6379/0")),
        RedisSessionStore,
    )
