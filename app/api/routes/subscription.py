import logging

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_backend_client, require_session
from app.core.entitlements import get_subscription
from app.core.errors import ErrorKind, error_body
from app.domain.schemas import UserSession
from app.services.backend import BackendClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/subscription")
async def get_user_subscription(
    response: Response,
    session: UserSession = Depends(require_session),
    backend: BackendClient = Depends(get_backend_client),
):
    """Current plan, this month's report usage and feature flags."""
    try:
        subscription = await get_subscription(session, backend)
    except Exception as e:
        logger.error(f"[Subscription] Subscription error: {e!r}")
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return error_body(ErrorKind.INTERNAL, "An error occurred")

    return {"success": True, "subscription": subscription.model_dump(by_alias=True)}
