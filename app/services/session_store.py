"""
Session record storage.

Two interchangeable backends behind one async interface:
- RedisSessionStore: KV/Redis, JSON values, TTL enforced by Redis
- InMemorySessionStore: process-local dict for local development

The backend is chosen once at startup from settings (see create_session_store).
"""

import logging
from typing import Optional, Protocol

import redis.asyncio as redis

from app.core.config import Settings
from app.domain.schemas import UserSession

logger = logging.getLogger(__name__)

# Key prefix for session records
KEY_PREFIX = "session:"


class SessionStore(Protocol):
    async def set(self, session_id: str, session: UserSession, ttl: int) -> None: ...

    async def get(self, session_id: str) -> Optional[UserSession]: ...

    async def delete(self, session_id: str) -> None: ...


class RedisSessionStore:
    """Session store backed by Redis (Vercel KV / Upstash in production)."""

    name = "redis"

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisSessionStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def set(self, session_id: str, session: UserSession, ttl: int) -> None:
        # Datetimes serialize as ISO-8601 strings
        payload = session.model_dump_json(by_alias=True)
        await self.client.set(f"{KEY_PREFIX}{session_id}", payload, ex=ttl)

    async def get(self, session_id: str) -> Optional[UserSession]:
        data = await self.client.get(f"{KEY_PREFIX}{session_id}")
        if not data:
            return None
        return UserSession.model_validate_json(data)

    async def delete(self, session_id: str) -> None:
        await self.client.delete(f"{KEY_PREFIX}{session_id}")


class InMemorySessionStore:
    """Process-local session store.

    TTL is not enforced here; expired records linger until the next lookup
    of that id, where the session manager discards them.
    """

    name = "in-memory"

    def __init__(self):
        self._sessions: dict[str, UserSession] = {}

    async def set(self, session_id: str, session: UserSession, ttl: int) -> None:
        self._sessions[session_id] = session.model_copy(deep=True)

    async def get(self, session_id: str) -> Optional[UserSession]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


def create_session_store(settings: Settings) -> SessionStore:
    """Factory function to create the configured session store."""
    if settings.kv_url:
        logger.info("Session storage: Redis")
        return RedisSessionStore.from_url(settings.kv_url)

    if settings.is_production:
        logger.warning("KV_URL is not set in production! Sessions will not survive restarts.")
    else:
        logger.info("Session storage: in-memory (development)")
    return InMemorySessionStore()
