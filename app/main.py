import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.api import api_router
from app.api.deps import get_backend_client, get_session_store
from app.core.config import get_settings
from app.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
    validation_error_handler,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    logger.info(f"Starting in {settings.environment} mode, backend at {settings.flask_backend_url}")
    get_session_store()
    get_backend_client()
    yield
    # Shutdown


class DynamicCORSMiddleware(BaseHTTPMiddleware):
    """CORS middleware that supports wildcard subdomains in production."""

    def __init__(self, app, origin_pattern: str, production: bool):
        super().__init__(app)
        self.origin_pattern = re.compile(origin_pattern)
        self.production = production

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")

        # Handle preflight requests
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        # Set CORS headers
        if origin:
            if not self.production or self.origin_pattern.match(origin):
                response.headers["Access-Control-Allow-Origin"] = origin
                response.headers["Access-Control-Allow-Credentials"] = "true"
            else:
                logger.warning(f"CORS rejected - Origin '{origin}' does not match pattern")

        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization, X-Requested-With"

        return response


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Microburbs Web",
        description="Member sessions, subscriptions and report proxy for the Microburbs site",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Session cookies require credentialed CORS
    app.add_middleware(
        DynamicCORSMiddleware,
        origin_pattern=settings.cors_origin_pattern,
        production=settings.is_production,
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include all routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
