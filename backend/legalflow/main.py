"""LegalFlow Backend: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# Logging is configured before the routers import their module-level loggers
from legalflow.core.logging import configure_structlog
from legalflow.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from legalflow.api.routes import api_router
from legalflow.core.config import get_settings
from legalflow.core.exceptions import LegalFlowError
from legalflow.db import close_db, init_db
from legalflow.middleware.correlation import (
    setup_correlation_middleware,
    get_correlation_id,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # SIGTERM flips this so /api/health answers 503 while connections drain
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized", configured=settings.database_configured)

    if not settings.stripe_secret_key:
        logger.warning("stripe_secret_key_missing", effect="checkout_unavailable")
    if not settings.stripe_webhook_secret:
        logger.warning("stripe_webhook_secret_missing", effect="webhook_endpoint_returns_503")

    yield

    logger.info("shutdown_begin")
    await close_db()
    logger.info("shutdown_complete")


def _error_response(request: Request, status_code: int, message, event: str, **context) -> JSONResponse:
    debug_id = str(uuid.uuid4())
    log = logger.error if status_code >= 500 else logger.warning
    log(
        event,
        status_code=status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        **context,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "debug_id": debug_id},
    )


async def legalflow_error_handler(request: Request, exc: LegalFlowError) -> JSONResponse:
    """Map domain exceptions to their HTTP status with a debug_id."""
    return _error_response(
        request,
        exc.status_code,
        str(exc),
        "legalflow_error",
        error_type=type(exc).__name__,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Global exception handler for HTTPException with debug_id tracking.

    Logs errors server-side with full context, returns sanitized response to client.
    """
    return _error_response(request, exc.status_code, exc.detail, "http_exception")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies, query strings and path parameters answer 400."""
    return _error_response(request, 400, "Invalid request", "request_validation_failed", errors=exc.errors())


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors with debug_id tracking.

    Logs the full traceback, returns a generic 500 (no internal details leaked).
    """
    return _error_response(
        request,
        500,
        "Internal server error",
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="LegalFlow - practice management with plan-based billing",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    allow_origins = list(dict.fromkeys([settings.frontend_url, *settings.cors_origins]))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware (runs first on incoming requests)
    setup_correlation_middleware(app)

    app.exception_handler(LegalFlowError)(legalflow_error_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "legalflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
