"""
Adapter for the Memberstack browser SDK.

The vendor SDK reports failures in several shapes: a plain string, an object
with a message and/or code, or an empty object. decode_sdk_error turns every
shape into one SDKError (kind + message) right at this boundary; nothing past
this module inspects vendor error shapes.

The SDK itself is injected through a provider callable (the bridge that
exposes window.$memberstackDom, or a fake in tests).
"""

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from app.core.errors import ErrorKind
from app.domain.schemas import Member
from app.services.memberstack import normalize_member

logger = logging.getLogger(__name__)

# Used when the SDK authenticates without handing back an access token
PLACEHOLDER_TOKEN = "sdk-auth-success"

INVALID_CREDENTIAL_CODES = {"INVALID_CREDENTIALS", "invalid-credentials"}


class SDKOperation(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"
    GOOGLE = "google"
    SEND_RESET_EMAIL = "send_reset_email"
    RESET_PASSWORD = "reset_password"
    CHECKOUT = "checkout"


DEFAULT_MESSAGES: dict[SDKOperation, str] = {
    SDKOperation.LOGIN: "Invalid email or password",
    SDKOperation.SIGNUP: "Signup failed. Please try again.",
    SDKOperation.GOOGLE: "Google authentication failed. Please try again.",
    SDKOperation.SEND_RESET_EMAIL: "Failed to send reset email",
    SDKOperation.RESET_PASSWORD: "Failed to reset password",
    SDKOperation.CHECKOUT: "Failed to start checkout",
}

# Empty error objects carry no detail; these are the observed meanings
EMPTY_ERROR_MESSAGES: dict[SDKOperation, tuple[ErrorKind, str]] = {
    SDKOperation.LOGIN: (
        ErrorKind.INVALID_CREDENTIALS,
        "Invalid email or password. Please check your credentials.",
    ),
    SDKOperation.SIGNUP: (
        ErrorKind.DUPLICATE_ACCOUNT,
        "Signup failed. This email may already be registered, or please check your details and try again.",
    ),
    SDKOperation.GOOGLE: (
        ErrorKind.PROVIDER_NOT_CONFIGURED,
        "Google sign-in is not configured. Please use email and password instead.",
    ),
}


@dataclass(frozen=True)
class SDKError:
    kind: ErrorKind
    message: str


class VendorSDKError(Exception):
    """Raised by SDK bridges to carry the vendor's raw error payload."""

    def __init__(self, payload: Any):
        super().__init__(payload)
        self.payload = payload


class SDKUnavailableError(Exception):
    """The vendor SDK did not load in time."""


def _classify_message(message: str, operation: SDKOperation) -> SDKError:
    lowered = message.lower()
    if operation == SDKOperation.LOGIN and any(
        word in lowered for word in ("invalid", "password", "email")
    ):
        return SDKError(ErrorKind.INVALID_CREDENTIALS, "Invalid email or password")
    if operation == SDKOperation.SIGNUP and ("already" in lowered or "exists" in lowered):
        return SDKError(
            ErrorKind.DUPLICATE_ACCOUNT,
            "This email is already registered. Please log in instead.",
        )
    if operation == SDKOperation.GOOGLE and "popup" in lowered:
        return SDKError(ErrorKind.POPUP_BLOCKED, "Popup was blocked. Please allow popups and try again.")
    return SDKError(ErrorKind.UNKNOWN, message)


def decode_sdk_error(raw: Any, operation: SDKOperation) -> SDKError:
    """Decode any vendor error shape into an SDKError.

    Args:
        raw: A string, a mapping (possibly empty), an exception, or None
        operation: The SDK call that failed; decides defaults and empty-object meaning

    Returns:
        SDKError with a closed kind and a human-readable message
    """
    if isinstance(raw, VendorSDKError):
        raw = raw.payload

    if isinstance(raw, SDKUnavailableError):
        return SDKError(ErrorKind.VENDOR_UNAVAILABLE, str(raw) or "Memberstack SDK not available")

    default = DEFAULT_MESSAGES[operation]

    if isinstance(raw, str):
        message = raw.strip()
        return _classify_message(message, operation) if message else SDKError(ErrorKind.UNKNOWN, default)

    if isinstance(raw, Mapping):
        if not raw:
            kind, message = EMPTY_ERROR_MESSAGES.get(operation, (ErrorKind.UNKNOWN, default))
            return SDKError(kind, message)
        if raw.get("code") in INVALID_CREDENTIAL_CODES:
            return SDKError(ErrorKind.INVALID_CREDENTIALS, "Invalid email or password")
        message = raw.get("message")
        if isinstance(message, str) and message.strip():
            return _classify_message(message.strip(), operation)
        fallback_kind = ErrorKind.INVALID_CREDENTIALS if operation == SDKOperation.LOGIN else ErrorKind.UNKNOWN
        return SDKError(fallback_kind, default)

    if isinstance(raw, BaseException):
        message = str(raw).strip()
        if message:
            return _classify_message(message, operation)

    return SDKError(ErrorKind.UNKNOWN, default)


@dataclass
class SDKResult:
    """Uniform result of an SDK call."""
    success: bool
    member: Optional[Member] = None
    token: Optional[str] = None
    data: dict = field(default_factory=dict)
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def failure(cls, error: SDKError) -> "SDKResult":
        return cls(success=False, error=error.message, kind=error.kind)


class MemberstackSDK(Protocol):
    """Async view of the vendor browser SDK. Calls return {"data": ..., "error": ...}."""

    async def login_member_email_password(self, email: str, password: str) -> dict: ...

    async def signup_member_email_password(
        self,
        email: str,
        password: str,
        custom_fields: dict[str, str],
        plan_id: Optional[str] = None,
    ) -> dict: ...

    async def login_with_provider(self, provider: str) -> dict: ...

    async def signup_with_provider(self, provider: str) -> dict: ...

    async def send_member_reset_password_email(self, email: str) -> dict: ...

    async def reset_member_password(self, token: str, new_password: str) -> dict: ...

    async def purchase_plans_with_checkout(self, price_id: str) -> None: ...

    async def logout(self) -> None: ...


SDKProvider = Callable[[], Optional[MemberstackSDK]]


async def wait_for_sdk(
    provider: SDKProvider,
    max_wait: float = 5.0,
    interval: float = 0.1,
) -> MemberstackSDK:
    """Poll until the SDK is loaded.

    Raises:
        SDKUnavailableError: If the SDK is still missing after max_wait seconds
    """
    start = time.monotonic()
    while True:
        sdk = provider()
        if sdk is not None:
            return sdk
        if time.monotonic() - start >= max_wait:
            raise SDKUnavailableError("Memberstack SDK not available")
        await asyncio.sleep(interval)


def _member_result(result: dict) -> Optional[SDKResult]:
    """Build a success result when the SDK response carries a member."""
    data = result.get("data") or {}
    raw_member = data.get("member") if isinstance(data, Mapping) else None
    if not raw_member:
        return None
    try:
        member = normalize_member(raw_member)
    except (KeyError, TypeError):
        logger.error("[Memberstack] SDK returned a member without an id")
        return None
    tokens = data.get("tokens") or {}
    return SDKResult(
        success=True,
        member=member,
        token=tokens.get("accessToken") or PLACEHOLDER_TOKEN,
        data=dict(data),
    )


class MemberstackBrowserClient:
    """Wraps the browser SDK calls used by the login, signup and account flows."""

    def __init__(self, provider: SDKProvider, max_wait: float = 5.0):
        self.provider = provider
        self.max_wait = max_wait

    async def _sdk(self) -> MemberstackSDK:
        return await wait_for_sdk(self.provider, max_wait=self.max_wait)

    async def _call(
        self,
        operation: SDKOperation,
        call: Callable[[MemberstackSDK], Awaitable[Optional[dict]]],
        expects_member: bool,
    ) -> SDKResult:
        try:
            sdk = await self._sdk()
            result = await call(sdk) or {}
        except Exception as e:
            logger.error(f"[Memberstack] {operation.value} error: {e!r}")
            return SDKResult.failure(decode_sdk_error(e, operation))

        if result.get("error") is not None:
            return SDKResult.failure(decode_sdk_error(result["error"], operation))

        if not expects_member:
            return SDKResult(success=True, data=dict(result.get("data") or {}))

        member_result = _member_result(result)
        if member_result:
            return member_result
        return SDKResult.failure(SDKError(
            ErrorKind.INVALID_CREDENTIALS if operation == SDKOperation.LOGIN else ErrorKind.UNKNOWN,
            DEFAULT_MESSAGES[operation],
        ))

    async def login_with_email(self, email: str, password: str) -> SDKResult:
        return await self._call(
            SDKOperation.LOGIN,
            lambda sdk: sdk.login_member_email_password(email=email, password=password),
            expects_member=True,
        )

    async def signup_with_email(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        plan_id: Optional[str] = None,
    ) -> SDKResult:
        custom_fields = {"first-name": first_name, "last-name": last_name}
        # Only real paid Memberstack plan ids are attached at signup
        if not (plan_id and plan_id.startswith("pln_") and "free" not in plan_id):
            plan_id = None

        return await self._call(
            SDKOperation.SIGNUP,
            lambda sdk: sdk.signup_member_email_password(
                email=email,
                password=password,
                custom_fields=custom_fields,
                plan_id=plan_id,
            ),
            expects_member=True,
        )

    async def login_with_google(self) -> SDKResult:
        """Log in with Google, falling back to Google signup for new members."""
        sdk = self.provider()
        if sdk is None:
            return SDKResult.failure(SDKError(
                ErrorKind.VENDOR_UNAVAILABLE,
                "Memberstack SDK not loaded. Please refresh the page and try again.",
            ))

        try:
            login_result = await sdk.login_with_provider(provider="google") or {}
            member_result = _member_result(login_result)
            if member_result:
                return member_result
            if login_result.get("error") is not None:
                logger.info("[Memberstack] Google login failed, trying signup")
        except Exception as e:
            logger.info(f"[Memberstack] Google login raised {e!r}, trying signup")

        try:
            signup_result = await sdk.signup_with_provider(provider="google") or {}
        except Exception as e:
            logger.error(f"[Memberstack] Signup with Google failed: {e!r}")
            error = decode_sdk_error(e, SDKOperation.GOOGLE)
            if error.kind == ErrorKind.UNKNOWN:
                error = SDKError(
                    ErrorKind.UNKNOWN,
                    "Google authentication failed. Make sure popups are allowed and try again.",
                )
            return SDKResult.failure(error)

        member_result = _member_result(signup_result)
        if member_result:
            return member_result
        return SDKResult.failure(decode_sdk_error(signup_result.get("error"), SDKOperation.GOOGLE))

    async def send_password_reset_email(self, email: str) -> SDKResult:
        return await self._call(
            SDKOperation.SEND_RESET_EMAIL,
            lambda sdk: sdk.send_member_reset_password_email(email=email),
            expects_member=False,
        )

    async def reset_password(self, token: str, new_password: str) -> SDKResult:
        return await self._call(
            SDKOperation.RESET_PASSWORD,
            lambda sdk: sdk.reset_member_password(token=token, new_password=new_password),
            expects_member=False,
        )

    async def purchase_plan(self, price_id: str) -> SDKResult:
        """Start the vendor's hosted checkout for a price."""
        return await self._call(
            SDKOperation.CHECKOUT,
            lambda sdk: sdk.purchase_plans_with_checkout(price_id=price_id),
            expects_member=False,
        )

    async def logout(self) -> None:
        try:
            sdk = await self._sdk()
            await sdk.logout()
        except Exception as e:
            logger.error(f"[Memberstack] Logout error: {e!r}")
