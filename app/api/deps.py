from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, Response, status

from app.core.config import Settings, get_settings
from app.domain.schemas import MemberstackEnv, UserSession
from app.services.backend import BackendClient, create_backend_client
from app.services.memberstack import MemberstackClient, get_memberstack_client
from app.services.reports import ReportService
from app.services.session_store import SessionStore, create_session_store
from app.services.sessions import SessionManager

MemberstackClientFactory = Callable[[MemberstackEnv], MemberstackClient]


@lru_cache
def get_session_store() -> SessionStore:
    return create_session_store(get_settings())


@lru_cache
def get_backend_client() -> BackendClient:
    return create_backend_client(get_settings())


def get_report_service(backend: BackendClient = Depends(get_backend_client)) -> ReportService:
    return ReportService(backend)


def get_memberstack_factory() -> MemberstackClientFactory:
    """Clients are per vendor environment, chosen by the request body."""
    return get_memberstack_client


def get_session_manager(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> SessionManager:
    return SessionManager(store, request, response, settings)


async def get_optional_session(
    sessions: SessionManager = Depends(get_session_manager),
) -> Optional[UserSession]:
    return await sessions.get_session()


async def require_session(
    response: Response,
    session: Optional[UserSession] = Depends(get_optional_session),
) -> UserSession:
    """Require a valid session - raises 401 if not authenticated.

    A stale cookie cleared during the lookup is carried on the 401.
    """
    if not session:
        cleared = response.headers.getlist("set-cookie")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"set-cookie": cleared[-1]} if cleared else None,
        )
    return session
