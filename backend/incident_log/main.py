"""Incident Log Service: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# structlog caches its processor chain on first use, so logging is configured
# here, before any module that calls structlog.get_logger is imported.
from incident_log.core.logging import configure_structlog
from incident_log.core.config import get_settings as _get_settings_early

_boot_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _boot_settings.debug else "INFO",
    json_logs=not _boot_settings.debug,
)

import structlog

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from incident_log.api.routes import api_router
from incident_log.core.config import get_settings
from incident_log.core.exceptions import (
    AmendmentNotAllowed,
    DependencyFailure,
    IncidentLogError,
    LogNotFound,
    RadioMessageNotFound,
    ValidationError,
)
from incident_log.db import init_db, close_db, init_redis, close_redis
from incident_log.middleware.correlation import (
    setup_correlation_middleware,
    get_correlation_id,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database engine and the optional Redis client; close them on exit."""
    # Flipped by SIGTERM; /health then answers 503 so the balancer drains us
    app.state.shutting_down = False

    def on_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", draining=True)

    signal.signal(signal.SIGTERM, on_sigterm)

    settings = get_settings()
    logger.info("service_starting", app_name=settings.app_name, debug=settings.debug)

    # Schema is owned by Alembic outside debug mode
    await init_db(create_tables=settings.debug)
    await init_redis()
    logger.info(
        "service_ready",
        tables_created=settings.debug,
        log_number_lock="redis" if settings.redis_url else "disabled",
    )

    yield

    await close_redis()
    await close_db()
    logger.info("service_stopped")


def _request_context(request: Request) -> dict:
    return {
        "correlation_id": get_correlation_id(),
        "path": request.url.path,
        "method": request.method,
        "user_id": getattr(request.state, "user_id", None),
    }


def _error_response(status_code: int, detail, debug_id: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "debug_id": debug_id, **extra},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Log an HTTPException with a fresh debug_id and echo its detail."""
    debug_id = str(uuid.uuid4())
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        detail=exc.detail,
        **_request_context(request),
    )
    return _error_response(exc.status_code, exc.detail, debug_id)


# Client-facing status per domain error; unlisted subclasses are server faults
_DOMAIN_STATUS: tuple[tuple[type[IncidentLogError], int], ...] = (
    (ValidationError, 400),
    (AmendmentNotAllowed, 403),
    (LogNotFound, 404),
    (RadioMessageNotFound, 404),
    (DependencyFailure, 503),
)


async def domain_exception_handler(request: Request, exc: IncidentLogError) -> JSONResponse:
    """Map an IncidentLogError to its status code.

    Validation failures carry the full ``errors`` list so a client can show
    every broken rule at once. Server-side failures hide the message.
    """
    debug_id = str(uuid.uuid4())
    status_code = next((code for exc_type, code in _DOMAIN_STATUS if isinstance(exc, exc_type)), 500)

    log = logger.warning if status_code < 500 else logger.error
    log(
        "domain_exception",
        status_code=status_code,
        debug_id=debug_id,
        error=str(exc),
        error_type=type(exc).__name__,
        **_request_context(request),
    )

    if status_code == 503:
        return _error_response(status_code, "Service temporarily unavailable", debug_id)
    if status_code >= 500:
        return _error_response(status_code, "Internal server error", debug_id)
    if isinstance(exc, ValidationError):
        return _error_response(status_code, str(exc), debug_id, errors=exc.errors)
    return _error_response(status_code, str(exc), debug_id)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log with traceback, answer a bare 500."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
        **_request_context(request),
    )
    return _error_response(500, "Internal server error", debug_id)


def register_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(IncidentLogError)(domain_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)


def create_app() -> FastAPI:
    """Build the application: CORS, request correlation, error handlers, /api routes."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Append-only incident logging for event safety control rooms",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, *settings.cors_allowed_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_correlation_middleware(app)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("incident_log.main:app", host="0.0.0.0", port=8000, reload=True)
