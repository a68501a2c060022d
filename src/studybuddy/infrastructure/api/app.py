"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studybuddy.core.config import get_settings
from studybuddy.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from studybuddy.domain.errors import RateLimitedError, StudyBuddyError
from studybuddy.infrastructure.persistence.database import (
    close_database,
    get_db_manager,
    init_database,
)
from studybuddy.infrastructure.realtime.event_broadcaster import EventBroadcaster
from studybuddy.infrastructure.realtime.realtime_manager import ConnectionManager
from studybuddy.infrastructure.security import RateLimitStorage
from studybuddy.infrastructure.storage import create_storage_provider

logger = get_logger(__name__)


async def run_realtime_maintenance(
    manager: ConnectionManager, interval: float, idle_timeout: float
) -> None:
    """Send heartbeats and prune silent connections until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            await manager.heartbeat()
            await manager.prune_stale(idle_timeout)
        except Exception as e:
            logger.error("Realtime maintenance pass failed", error=str(e), exc_type=type(e).__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings = get_settings()

    # Startup
    configure_logging(settings)
    logger.info(
        "Starting StudyBuddy",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if settings.storage_provider == "local":
        storage_path = Path(settings.storage_path)
        storage_path.mkdir(parents=True, exist_ok=True)
        logger.info("Storage directory created", path=str(storage_path))

    try:
        await init_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    maintenance = asyncio.create_task(
        run_realtime_maintenance(
            app.state.connection_manager,
            settings.realtime_heartbeat_seconds,
            settings.realtime_idle_timeout_seconds,
        )
    )
    logger.info("Realtime manager started")

    yield

    # Shutdown
    logger.info("Shutting down StudyBuddy")

    maintenance.cancel()
    with suppress(asyncio.CancelledError):
        await maintenance
    await app.state.event_broadcaster.drain()
    await app.state.connection_manager.close()
    logger.info("Realtime manager stopped")

    http_client = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()

    await close_database()
    logger.info("Database connection closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Per-application collaborators (realtime connection manager, event
    broadcaster, storage provider, rate limit buckets) live on
    ``app.state`` so that two applications never share them.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Study groups with a realtime message board and AI study helpers",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.connection_manager = ConnectionManager(
        max_subscriptions=settings.realtime_max_subscriptions
    )
    app.state.event_broadcaster = EventBroadcaster(app.state.connection_manager)
    app.state.storage = create_storage_provider(settings)
    app.state.rate_limiter = RateLimitStorage()

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app)
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity or other dependencies.
        """
        return {
            "status": "healthy",
            "service": "StudyBuddy",
            "version": get_settings().app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check endpoint, including database connectivity."""
        db_healthy = await get_db_manager().check_connection()

        if db_healthy:
            return {
                "status": "ready",
                "service": "StudyBuddy",
                "version": get_settings().app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": "StudyBuddy",
                "database": "disconnected",
            },
        )

    @app.get("/live", tags=["health"])
    async def liveness_check():
        """Liveness check endpoint."""
        return {
            "status": "alive",
            "service": "StudyBuddy",
            "version": get_settings().app_version,
        }


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from studybuddy.infrastructure.api.routes import (
        ai_router,
        files_download_router,
        files_router,
        groups_router,
        messages_router,
        realtime_router,
        users_router,
    )

    settings = get_settings()
    prefix = settings.api_prefix

    app.include_router(users_router, prefix=f"{prefix}/users", tags=["users"])
    app.include_router(groups_router, prefix=f"{prefix}/groups", tags=["groups"])
    app.include_router(messages_router, prefix=f"{prefix}/messages", tags=["messages"])
    app.include_router(files_router, prefix=f"{prefix}/files", tags=["files"])
    app.include_router(ai_router, prefix=f"{prefix}/ai", tags=["ai"])
    app.include_router(realtime_router, prefix=f"{prefix}/realtime", tags=["realtime"])

    # Public URLs handed out by the local storage provider
    app.include_router(files_download_router, prefix="/files", tags=["files"])

    @app.get(prefix, tags=["root"])
    async def api_root():
        """API root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "api_version": "v1",
        }


def error_response(exc: StudyBuddyError) -> JSONResponse:
    """Render a domain error as its HTTP response."""
    headers = {}
    if exc.status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, RateLimitedError):
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(StudyBuddyError)
    async def domain_exception_handler(request: Request, exc: StudyBuddyError):
        """Map domain errors to their status codes."""
        logger.info(
            "Request rejected",
            path=str(request.url.path),
            method=request.method,
            status_code=exc.status_code,
            error=exc.code,
            detail=exc.message,
        )
        return error_response(exc)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "detail": str(exc) if get_settings().debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Middleware to log all requests and add correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID") or new_correlation_id()
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            # Clear context to prevent leakage
            clear_context()


# Create the application instance
app = create_app()
