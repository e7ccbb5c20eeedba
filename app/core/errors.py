"""Error kinds, the JSON failure payload, and app-wide exception handlers."""
import logging
from enum import Enum
from typing import Optional

from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Closed set of error categories surfaced to callers alongside a message."""
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    DUPLICATE_ACCOUNT = "DUPLICATE_ACCOUNT"
    VENDOR_UNAVAILABLE = "VENDOR_UNAVAILABLE"
    POPUP_BLOCKED = "POPUP_BLOCKED"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    FEATURE_NOT_AVAILABLE = "FEATURE_NOT_AVAILABLE"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


STATUS_KINDS: dict[int, ErrorKind] = {
    status.HTTP_400_BAD_REQUEST: ErrorKind.INVALID_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ErrorKind.NOT_AUTHENTICATED,
    status.HTTP_403_FORBIDDEN: ErrorKind.FEATURE_NOT_AVAILABLE,
    status.HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND,
}


def error_body(kind: ErrorKind, message: str) -> dict:
    """Standard failure payload for JSON route handlers."""
    return {"success": False, "error": message, "code": kind.value}


class AppError(Exception):
    """An expected failure with a status code and error kind."""
    kind = ErrorKind.INTERNAL
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, kind: Optional[ErrorKind] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if kind:
            self.kind = kind
        if status_code:
            self.status_code = status_code


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class InvalidRequestError(AppError):
    kind = ErrorKind.INVALID_REQUEST
    status_code = status.HTTP_400_BAD_REQUEST


async def app_error_handler(request: Request, exc: AppError):
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(log_level, f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.kind, exc.message))


async def http_error_handler(request: Request, exc: HTTPException):
    """Render HTTPExceptions in the {success, error, code} shape.

    Structured details (feature gates) keep their extra fields.
    """
    kind = STATUS_KINDS.get(exc.status_code, ErrorKind.UNKNOWN)
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        message = detail.pop("message", None) or "Request failed"
        content = {**error_body(ErrorKind(detail.pop("code", kind.value)), message), **detail}
    else:
        content = error_body(kind, str(exc.detail) if exc.detail else "Request failed")
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ErrorKind.INTERNAL, "An error occurred"),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"{request.method} {request.url.path} -> invalid request: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(ErrorKind.INVALID_REQUEST, "Invalid request"),
    )
