"""FastAPI application entry point.

SmashQueue API - badminton court queue and match tracking.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from smashqueue import __version__
from smashqueue.api import admin, matches, queue, users
from smashqueue.config import get_settings
from smashqueue.logging_config import bind_context, clear_context, configure_logging, get_logger
from smashqueue.middleware.prometheus import setup_prometheus
from smashqueue.middleware.sentry import init_sentry
from smashqueue.services.locks import WriteLocks
from smashqueue.services.notifier import StateNotifier
from smashqueue.utils.db import close_db, engine, init_db
from smashqueue.utils.errors import ErrorCode, SmashQueueError
from smashqueue.utils.json_utils import ORJSONResponse
from smashqueue.utils.redis_client import close_redis, get_redis, init_redis

settings = get_settings()

configure_logging(
    log_level=settings.log_level,
    json_logs=settings.app_env == "production",
    app_env=settings.app_env,
)
logger = get_logger(__name__)

sentry_enabled = init_sentry(
    dsn=settings.sentry_dsn,
    environment=settings.app_env,
    release=settings.app_version,
    traces_sample_rate=settings.sentry_traces_sample_rate
    if settings.app_env == "production"
    else 0.0,
)
if sentry_enabled:
    logger.info("sentry_initialized")
elif settings.app_env == "production":
    logger.warning("sentry_disabled", reason="SENTRY_DSN not configured")


# =============================================================================
# Lifespan Events
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env, version=__version__)

    try:
        await init_db(create_schema=settings.database_url.startswith("sqlite"))
        logger.info("database_connected")

        redis_instance = await init_redis()
        logger.info("redis_initialized", enabled=redis_instance is not None)

        _app.state.notifier = StateNotifier(redis_instance, settings.notify_channel)
        _app.state.write_locks = WriteLocks()

        logger.info("application_started", courts=settings.court_list)
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    logger.info("application_stopping")
    try:
        await close_db()
        await close_redis()
        logger.info("application_stopped")
    except Exception as e:
        logger.error("shutdown_error", error=str(e))


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="SmashQueue API",
    version=__version__,
    description="Badminton court queue, match lifecycle and player stats",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Replaced with fresh instances by the lifespan handler
app.state.write_locks = WriteLocks()
app.state.notifier = StateNotifier()

if settings.metrics_enabled:
    prometheus_instrumentator = setup_prometheus(app, app_version=__version__)


# =============================================================================
# Middleware
# =============================================================================


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add X-Request-ID header to all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.start_time = datetime.now(timezone.utc)

        clear_context()
        bind_context(request_id=request_id)

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        duration = (
            datetime.now(timezone.utc) - request.state.start_time
        ).total_seconds()
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_seconds=round(duration, 3),
        )

        return response


app.add_middleware(RequestIDMiddleware)

cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# Error Handlers
# =============================================================================


def get_request_id(request: Request) -> str:
    """Get request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("X-Request-ID", str(uuid.uuid4()))


def create_error_response(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    """Create standardized error response."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
        "traceId": trace_id,
    }


@app.exception_handler(SmashQueueError)
async def domain_error_handler(request: Request, exc: SmashQueueError) -> ORJSONResponse:
    """Map domain errors onto the envelope with the error's own status."""
    trace_id = get_request_id(request)

    if exc.http_status >= 500:
        logger.error("domain_error", code=exc.code, message=exc.message, trace_id=trace_id)
    else:
        logger.warning("domain_error", code=exc.code, message=exc.message, trace_id=trace_id)

    return ORJSONResponse(
        status_code=exc.http_status,
        content=create_error_response(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            trace_id=trace_id,
        ),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Handle malformed request bodies and query parameters."""
    trace_id = get_request_id(request)
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]

    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=create_error_response(
            code=ErrorCode.VALIDATION_ERROR.value,
            message="Invalid request",
            details={"errors": errors},
            trace_id=trace_id,
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(
    request: Request, exc: HTTPException
) -> ORJSONResponse:
    """Handle HTTP exceptions."""
    trace_id = get_request_id(request)

    return ORJSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            code="HTTP_ERROR",
            message=str(exc.detail),
            trace_id=trace_id,
        ),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Handle unexpected exceptions."""
    trace_id = get_request_id(request)

    logger.error(
        "unexpected_error",
        error_type=type(exc).__name__,
        error_message=str(exc),
        trace_id=trace_id,
        exc_info=True,
    )

    # Don't expose internal error details in production
    message = "Internal server error"
    if settings.app_debug:
        message = f"{type(exc).__name__}: {exc}"

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            code=ErrorCode.INTERNAL_ERROR.value,
            message=message,
            trace_id=trace_id,
        ),
    )


# =============================================================================
# Health Check Endpoints
# =============================================================================


@app.get(
    "/health",
    tags=["Health"],
    summary="Health check endpoint",
    response_model=dict,
)
async def health_check() -> dict[str, Any]:
    """Check application health status.

    Redis is optional; when it is not configured it is reported as
    ``disabled`` and does not degrade the status.
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "services": {
            "database": "unknown",
            "redis": "unknown",
        },
    }

    overall_healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["services"]["database"] = "healthy"
    except Exception as e:
        health_status["services"]["database"] = f"unhealthy: {str(e)}"
        overall_healthy = False
        logger.error("database_health_check_failed", error=str(e))

    try:
        current_redis = get_redis()

        if current_redis:
            await current_redis.ping()
            health_status["services"]["redis"] = "healthy"
        else:
            health_status["services"]["redis"] = "disabled"
    except Exception as e:
        health_status["services"]["redis"] = f"unhealthy: {str(e)}"
        overall_healthy = False
        logger.error("redis_health_check_failed", error=str(e))

    if not overall_healthy:
        health_status["status"] = "degraded"

    return health_status


@app.get(
    "/health/live",
    tags=["Health"],
    summary="Liveness probe",
)
async def liveness_probe() -> dict[str, str]:
    """Liveness probe: the process is up."""
    return {"status": "alive"}


@app.get(
    "/health/ready",
    tags=["Health"],
    summary="Readiness probe",
)
async def readiness_probe():
    """Readiness probe: storage (and Redis, when configured) answer."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        current_redis = get_redis()
        if current_redis:
            await current_redis.ping()

        return {"status": "ready"}
    except Exception as e:
        logger.error("readiness_probe_failed", error=str(e))
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready", "error": str(e)},
        )


# =============================================================================
# API Routers
# =============================================================================


API_PREFIX = "/api"

app.include_router(queue.router, prefix=API_PREFIX)
app.include_router(matches.router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(admin.router, prefix=API_PREFIX)


@app.get(
    "/",
    tags=["Root"],
    summary="API root endpoint",
)
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "SmashQueue API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "smashqueue.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
        log_level=settings.log_level.lower(),
    )
