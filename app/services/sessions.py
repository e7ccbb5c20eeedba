"""
Cookie-backed server-side sessions.

The cookie carries an opaque random id; the session store is the only source
of truth. One SessionManager is built per request from the request cookies and
the response that will carry any Set-Cookie changes.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Request, Response

from app.core.config import Settings
from app.domain.schemas import User, UserSession
from app.services.session_store import SessionStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """Issue, validate and revoke sessions for the current request."""

    def __init__(
        self,
        store: SessionStore,
        request: Request,
        response: Response,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.response = response
        self.settings = settings
        self.clock = clock
        self.cookie_name = settings.session_cookie_name
        # Tracks the cookie as this request will leave it
        self._session_id: Optional[str] = request.cookies.get(self.cookie_name)

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    def _set_cookie(self, session_id: str) -> None:
        self.response.set_cookie(
            key=self.cookie_name,
            value=session_id,
            max_age=self.settings.session_duration_seconds,
            path="/",
            httponly=True,
            secure=self.settings.is_production,
            samesite="lax",
        )
        self._session_id = session_id

    def _clear_cookie(self) -> None:
        self.response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            secure=self.settings.is_production,
            samesite="lax",
        )
        self._session_id = None

    async def create_session(self, user: User) -> str:
        """Create a session for a user and set the session cookie.

        Any session referenced by the browser's current cookie is deleted first,
        so a browser never holds two valid sessions at once.

        Returns:
            The new session id
        """
        existing_id = self._session_id
        if existing_id:
            logger.info(f"[Session] Clearing existing session: {existing_id}")
            await self.store.delete(existing_id)

        session_id = str(uuid.uuid4())
        now = self.clock()
        duration = timedelta(seconds=self.settings.session_duration_seconds)

        session = UserSession(
            id=session_id,
            user_email=user.email,
            memberstack_id=user.memberstack_id,
            first_name=user.first_name,
            last_name=user.last_name,
            active_plans=list(user.active_plans),
            best_plan_id=user.best_plan_id,
            created_at=now,
            last_accessed=now,
            expires_at=now + duration,
            is_active=True,
        )

        await self.store.set(session_id, session, self.settings.session_duration_seconds)
        logger.info(f"[Session] Created new session {session_id} for user {user.email}")

        self._set_cookie(session_id)
        return session_id

    async def get_session(self) -> Optional[UserSession]:
        """Get the valid session for this request, or None.

        Dangling, expired and inactive sessions clear the cookie. A valid
        session has its last_accessed time refreshed; expires_at never slides.
        """
        session_id = self._session_id
        if not session_id:
            return None

        session = await self.store.get(session_id)
        if not session:
            logger.info(f"[Session] Session not found in store for ID: {session_id}")
            self._clear_cookie()
            return None

        now = self.clock()
        if not session.is_active or session.expires_at < now:
            logger.info(f"[Session] Session expired or inactive for user: {session.user_email}")
            await self.store.delete(session_id)
            self._clear_cookie()
            return None

        session.last_accessed = now
        remaining = int((session.expires_at - now).total_seconds())
        await self.store.set(session_id, session, max(remaining, 1))

        return session

    async def get_current_user(self) -> Optional[User]:
        session = await self.get_session()
        if not session:
            return None
        return session.to_user()

    async def destroy_session(self) -> None:
        """Revoke the current session. No-op when no cookie was presented."""
        session_id = self._session_id
        if not session_id:
            return

        session = await self.store.get(session_id)
        if session:
            session.is_active = False
            await self.store.set(session_id, session, self.settings.session_duration_seconds)
        await self.store.delete(session_id)
        logger.info(f"[Session] Destroyed session {session_id}")

        self._clear_cookie()

    async def is_authenticated(self) -> bool:
        return await self.get_session() is not None
