import logging
import time

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import MemberstackClientFactory, get_memberstack_factory, get_session_manager
from app.core.errors import ErrorKind, error_body
from app.core.plans import FREE_PLAN_ID
from app.domain.schemas import AuthResponse, LoginRequest, SignupRequest, User
from app.services.memberstack import MemberstackClient
from app.services.sessions import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter()

MEMBERS_AREA_URL = "/members-area"


def _auth_success(user: User) -> dict:
    return AuthResponse(success=True, user=user, redirect_url=MEMBERS_AREA_URL).model_dump(
        by_alias=True, exclude_none=True
    )


@router.post("/login")
async def login(
    data: LoginRequest,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
    memberstack: MemberstackClientFactory = Depends(get_memberstack_factory),
):
    """Exchange a client-side Memberstack login for a server session."""
    try:
        logger.info(f"[Login] Attempting login for email: {data.email}, memberstackId: {data.memberstack_id}")

        if not data.email or not data.memberstack_token:
            response.status_code = status.HTTP_400_BAD_REQUEST
            return error_body(ErrorKind.INVALID_REQUEST, "Email and token are required")

        client: MemberstackClient = memberstack(data.env)

        # Lookup by id is exact; email search is the fallback
        member = None
        if data.memberstack_id:
            member = await client.get_member_by_id(data.memberstack_id)
        if not member:
            member = await client.get_member(data.email)

        if not member and data.memberstack_id:
            # Vendor lookup can lag behind a fresh client-side login
            logger.info("[Login] Using client-provided data for session")
            user = User(
                id=data.memberstack_id,
                email=data.email,
                first_name=data.first_name or "",
                last_name=data.last_name or "",
                active_plans=[FREE_PLAN_ID],
                best_plan_id=FREE_PLAN_ID,
                memberstack_id=data.memberstack_id,
            )
            await sessions.create_session(user)
            return _auth_success(user)

        if not member:
            response.status_code = status.HTTP_404_NOT_FOUND
            return error_body(ErrorKind.NOT_FOUND, "User not found")

        active_plans = client.get_active_plan_ids(member)
        user = User(
            id=member.id,
            email=member.email,
            first_name=member.first_name or data.first_name or "",
            last_name=member.last_name or data.last_name or "",
            active_plans=active_plans,
            best_plan_id=client.get_best_plan_id(active_plans),
            memberstack_id=member.id,
        )

        logger.info(f"[Login] Creating session for user: {user.email}")
        await sessions.create_session(user)
        return _auth_success(user)
    except Exception as e:
        logger.error(f"[Login] Login error: {e!r}")
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return error_body(ErrorKind.INTERNAL, "An error occurred during login")


@router.post("/signup")
async def signup(
    data: SignupRequest,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
    memberstack: MemberstackClientFactory = Depends(get_memberstack_factory),
):
    """Open a session for an account just created client-side."""
    try:
        if not data.email or not data.memberstack_token:
            response.status_code = status.HTTP_400_BAD_REQUEST
            return error_body(ErrorKind.INVALID_REQUEST, "Email and token are required")

        client: MemberstackClient = memberstack(data.env)
        member = await client.get_member(data.email)

        if not member:
            # The vendor may not have synced the new member yet
            logger.info(f"[Signup] Member not found yet for {data.email}, using provisional user")
            user = User(
                id=f"temp_{int(time.time() * 1000)}",
                email=data.email,
                first_name=data.first_name,
                last_name=data.last_name,
                active_plans=[data.plan or FREE_PLAN_ID],
                best_plan_id=data.plan or FREE_PLAN_ID,
                memberstack_id="",
            )
            await sessions.create_session(user)
            return _auth_success(user)

        active_plans = client.get_active_plan_ids(member)
        best_plan_id = client.get_best_plan_id(active_plans)
        user = User(
            id=member.id,
            email=member.email,
            first_name=member.first_name or data.first_name,
            last_name=member.last_name or data.last_name,
            active_plans=active_plans or [data.plan or FREE_PLAN_ID],
            best_plan_id=best_plan_id or data.plan or FREE_PLAN_ID,
            memberstack_id=member.id,
        )

        await sessions.create_session(user)
        return _auth_success(user)
    except Exception as e:
        logger.error(f"[Signup] Signup error: {e!r}")
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return error_body(ErrorKind.INTERNAL, "An error occurred during signup")


@router.get("/me")
async def get_me(
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Get the current session's user."""
    try:
        user = await sessions.get_current_user()
    except Exception as e:
        logger.error(f"[Auth] Get user error: {e!r}")
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return error_body(ErrorKind.INTERNAL, "An error occurred")

    if not user:
        response.status_code = status.HTTP_401_UNAUTHORIZED
        return error_body(ErrorKind.NOT_AUTHENTICATED, "Not authenticated")
    return {"success": True, "user": user.model_dump(by_alias=True)}


@router.get("/check")
async def check_auth(sessions: SessionManager = Depends(get_session_manager)):
    """Lightweight login probe. Always 200."""
    try:
        logged_in = await sessions.is_authenticated()
    except Exception as e:
        logger.error(f"[Auth] Auth check error: {e!r}")
        logged_in = False
    return {"logged_in": logged_in}


@router.post("/logout")
async def logout(sessions: SessionManager = Depends(get_session_manager)):
    await sessions.destroy_session()
    return {"success": True}
