"""
Login/signup state machine.

    ANONYMOUS -> CLIENT_AUTHENTICATING -> SERVER_SESSION_PENDING -> AUTHENTICATED

The vendor SDK authenticates first (client side), then the local session
routes turn the vendor identity into a server session. Any failure returns the
flow to ANONYMOUS with an error; retries are unlimited.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

import httpx

from app.core.errors import ErrorKind
from app.core.plans import FREE_PLAN_ID, PRICING_PLAN_IDS, get_checkout_price_id
from app.domain.schemas import MemberstackEnv, User
from app.services.memberstack_sdk import PLACEHOLDER_TOKEN, MemberstackBrowserClient, SDKResult

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred. Please try again."


class AuthState(str, Enum):
    ANONYMOUS = "anonymous"
    CLIENT_AUTHENTICATING = "client_authenticating"
    SERVER_SESSION_PENDING = "server_session_pending"
    AUTHENTICATED = "authenticated"


ALLOWED_TRANSITIONS: dict[AuthState, set[AuthState]] = {
    AuthState.ANONYMOUS: {AuthState.CLIENT_AUTHENTICATING},
    AuthState.CLIENT_AUTHENTICATING: {AuthState.SERVER_SESSION_PENDING, AuthState.ANONYMOUS},
    AuthState.SERVER_SESSION_PENDING: {AuthState.AUTHENTICATED, AuthState.ANONYMOUS},
    AuthState.AUTHENTICATED: {AuthState.CLIENT_AUTHENTICATING, AuthState.ANONYMOUS},
}


class InvalidTransitionError(Exception):
    """Raised when an auth step is started from a state that cannot reach it."""

    def __init__(self, current: AuthState, target: AuthState):
        super().__init__(f"Cannot move from {current.value} to {target.value}")
        self.current = current
        self.target = target


def validate_password_strength(password: str) -> tuple[bool, str]:
    """Validate password meets signup requirements."""
    if len(password) < 8:
        return False, "Password must be at least 8 characters"
    if not any(c.isupper() for c in password):
        return False, "Password must contain at least one uppercase letter"
    if not any(c.islower() for c in password):
        return False, "Password must contain at least one lowercase letter"
    if not any(c.isdigit() for c in password):
        return False, "Password must contain at least one number"
    return True, "Password is valid"


class SessionAPI(Protocol):
    """The local session routes, as seen from the browser."""

    async def login(self, payload: dict) -> dict: ...

    async def signup(self, payload: dict) -> dict: ...

    async def logout(self) -> dict: ...


class HttpSessionAPI:
    """SessionAPI over HTTP. The client keeps the session cookie between calls."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _post(self, path: str, payload: Optional[dict] = None) -> dict:
        response = await self.client.post(path, json=payload or {})
        try:
            return response.json()
        except ValueError:
            return {"success": False, "error": f"Unexpected response ({response.status_code})"}

    async def login(self, payload: dict) -> dict:
        return await self._post("/api/auth/login", payload)

    async def signup(self, payload: dict) -> dict:
        return await self._post("/api/auth/signup", payload)

    async def logout(self) -> dict:
        return await self._post("/api/auth/logout")


@dataclass
class AuthOutcome:
    success: bool
    state: AuthState
    user: Optional[User] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class AuthFlow:
    """Drives one browser's authentication through the named states."""

    def __init__(
        self,
        sdk: MemberstackBrowserClient,
        session_api: SessionAPI,
        env: MemberstackEnv = "staging",
    ):
        self.sdk = sdk
        self.session_api = session_api
        self.env = env
        self.state = AuthState.ANONYMOUS
        self.user: Optional[User] = None
        self.error: Optional[str] = None
        self.error_kind: Optional[ErrorKind] = None
        # Set when signup hands off to hosted checkout
        self.checkout_pending = False
        # Set on return from checkout; the UI asks for remaining profile details
        self.show_detail_prompt = False

    def _transition(self, target: AuthState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)
        logger.debug(f"[AuthFlow] {self.state.value} -> {target.value}")
        self.state = target

    def _begin(self) -> None:
        self._transition(AuthState.CLIENT_AUTHENTICATING)
        self.error = None
        self.error_kind = None

    def _fail(self, message: str, kind: ErrorKind) -> AuthOutcome:
        self._transition(AuthState.ANONYMOUS)
        self.user = None
        self.error = message
        self.error_kind = kind
        return AuthOutcome(success=False, state=self.state, error=message, error_kind=kind)

    def _fail_sdk(self, result: SDKResult) -> AuthOutcome:
        return self._fail(result.error or "Authentication failed", result.kind or ErrorKind.UNKNOWN)

    async def _authenticate_client(self, call) -> SDKResult:
        try:
            return await call()
        except Exception as e:
            logger.error(f"[AuthFlow] Client authentication error: {e!r}")
            return SDKResult(success=False, error=GENERIC_ERROR, kind=ErrorKind.INTERNAL)

    async def _open_session(self, call, payload: dict) -> AuthOutcome:
        self._transition(AuthState.SERVER_SESSION_PENDING)
        try:
            body = await call(payload)
            if not isinstance(body, dict):
                raise ValueError(f"Unexpected session response: {body!r}")
            user = None
            if body.get("success") and body.get("user"):
                user = User.model_validate(body["user"])
        except Exception as e:
            logger.error(f"[AuthFlow] Session request failed: {e!r}")
            return self._fail(GENERIC_ERROR, ErrorKind.INTERNAL)

        if user is None:
            try:
                kind = ErrorKind(body.get("code") or ErrorKind.UNKNOWN.value)
            except ValueError:
                kind = ErrorKind.UNKNOWN
            return self._fail(body.get("error") or "Failed to create session", kind)

        self.user = user
        self._transition(AuthState.AUTHENTICATED)
        return AuthOutcome(success=True, state=self.state, user=self.user)

    async def login(self, email: str, password: str) -> AuthOutcome:
        self._begin()
        result = await self._authenticate_client(lambda: self.sdk.login_with_email(email, password))
        if not result.success:
            return self._fail_sdk(result)

        member = result.member
        payload = {
            "email": email,
            "memberstackToken": result.token or PLACEHOLDER_TOKEN,
            "memberstackId": member.id if member else None,
            "firstName": member.first_name if member else None,
            "lastName": member.last_name if member else None,
            "env": self.env,
        }
        return await self._open_session(self.session_api.login, payload)

    async def login_with_google(self) -> AuthOutcome:
        self._begin()
        result = await self._authenticate_client(self.sdk.login_with_google)
        if not result.success:
            return self._fail_sdk(result)

        member = result.member
        payload = {
            "email": member.email if member else "",
            "memberstackToken": result.token or PLACEHOLDER_TOKEN,
            "memberstackId": member.id if member else None,
            "firstName": member.first_name if member else None,
            "lastName": member.last_name if member else None,
            "env": self.env,
        }
        return await self._open_session(self.session_api.login, payload)

    async def signup(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        plan_key: str = "free",
        billing: str = "monthly",
    ) -> AuthOutcome:
        """Sign up, open a session, then hand off to checkout for paid plans."""
        valid, message = validate_password_strength(password)
        if not valid:
            self.error = message
            self.error_kind = ErrorKind.INVALID_REQUEST
            return AuthOutcome(
                success=False,
                state=self.state,
                error=message,
                error_kind=ErrorKind.INVALID_REQUEST,
            )

        plan_id = PRICING_PLAN_IDS.get(plan_key, f"pln_{plan_key}")

        self._begin()
        result = await self._authenticate_client(
            lambda: self.sdk.signup_with_email(email, password, first_name, last_name, plan_id)
        )
        if not result.success:
            return self._fail_sdk(result)

        payload = {
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "plan": plan_id or FREE_PLAN_ID,
            "memberstackToken": result.token or PLACEHOLDER_TOKEN,
            "env": self.env,
        }
        outcome = await self._open_session(self.session_api.signup, payload)
        if not outcome.success:
            return outcome

        price_id = get_checkout_price_id(plan_key, billing)
        if price_id:
            checkout = await self.sdk.purchase_plan(price_id)
            if checkout.success:
                self.checkout_pending = True
            else:
                # The session already stands; the member can upgrade later
                logger.error(f"[AuthFlow] Checkout error: {checkout.error}")
        return outcome

    def complete_checkout_return(self) -> bool:
        """Mark the return from hosted checkout. Returns True if a prompt is due."""
        if not self.checkout_pending:
            return False
        self.checkout_pending = False
        self.show_detail_prompt = True
        return True

    async def logout(self) -> None:
        await self.sdk.logout()
        try:
            await self.session_api.logout()
        except Exception as e:
            logger.error(f"[AuthFlow] Logout request failed: {e}")
        if self.state != AuthState.ANONYMOUS:
            self._transition(AuthState.ANONYMOUS)
        self.user = None
        self.checkout_pending = False
        self.show_detail_prompt = False
