"""
Stockroom — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application for one service.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app(service) returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn stockroom.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                FastAPI App (SERVICE=...)                  │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────────────────┐  │
    │  │ Req ID   │→│  Logging        │→│ HSTS (web, prod) │  │
    │  └──────────┘ └─────────────────┘ └──────────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  inventory: GET/POST /inventory                          │
    │  orders:    POST /orders                                 │
    │  users:     GET /users/{id}                              │
    │  web:       GET /, GET /inventory, POST /inventory/add   │
    │  all:       GET /health                                  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ EventPublish→400 │ NotFound→404       │
    │  Upstream→502   │ DB→500           │ Unexpected→500     │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration for the service (fail fast)
    3. inventory/web: run the startup readiness guard (migrations, bounded retry);
       a fatal or exhausted guard aborts startup and the process exits
    4. orders/users: build the outbound clients
    5. Log startup complete

    Shutdown:
    1. Close outbound clients
    2. Dispose database engine (close all connections)
    3. Log shutdown complete
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from stockroom import __version__
from stockroom.config import DATABASE_SERVICES, settings
from stockroom.database import dispose_engine
from stockroom.exceptions import (
    DatabaseError,
    EventPublishError,
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
)
from stockroom.middleware.logging import RequestLoggingMiddleware
from stockroom.middleware.request_id import RequestIDMiddleware, request_id_var
from stockroom.migrations import DatabaseMigrator
from stockroom.readiness import StartupReadinessGuard
from stockroom.routes import health, inventory, orders, users, web
from stockroom.services.order_publisher import OrderEventPublisher
from stockroom.services.user_directory import UserDirectoryClient

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    What:    One format for every module, written to stdout.
    When:    Called once during app startup (before ANY other initialization).

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,  # Override any existing logging config
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("azure").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Startup Readiness
# ══════════════════════════════════════════════════════════════════════════

def run_readiness_guard(migrator: DatabaseMigrator) -> StartupReadinessGuard:
    """
    Migrate the store, retrying while it is unreachable. Blocking.

    Runs in a worker thread (see lifespan): Alembic's async environment starts
    its own event loop.
    """
    guard = StartupReadinessGuard(
        migrator.migrate,
        max_retries=settings.startup_max_retries,
        retry_delay=settings.startup_retry_delay,
    )
    guard.run()
    return guard


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: startup and shutdown procedures.

    Code before `yield` runs before uvicorn opens its socket, so a service
    whose readiness guard fails never receives a request: the exception
    propagates, uvicorn reports the startup failure and exits non-zero.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    service = app.state.service
    logger.info("=" * 60)
    logger.info("Stockroom %s service starting up...", service)

    try:
        settings.validate_for_service(service)
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        raise

    if service in DATABASE_SERVICES:
        if settings.run_migrations_on_startup:
            await asyncio.to_thread(
                run_readiness_guard, DatabaseMigrator(settings.database_url)
            )
        else:
            logger.info("RUN_MIGRATIONS_ON_STARTUP is off; skipping the readiness guard.")

    if service == "orders":
        app.state.order_publisher = OrderEventPublisher.from_connection_string(
            settings.eventhub_connection_string,
            settings.eventhub_name,
        )

    if service == "users":
        app.state.user_directory = UserDirectoryClient(
            httpx.AsyncClient(
                base_url=settings.user_directory_url,
                timeout=settings.user_directory_timeout,
            ),
            max_attempts=settings.retry_max_attempts,
            min_wait=settings.retry_min_wait,
            max_wait=settings.retry_max_wait,
        )

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Stockroom %s service shutting down...", service)

    publisher = getattr(app.state, "order_publisher", None)
    if publisher is not None:
        await publisher.close()

    directory = getattr(app.state, "user_directory", None)
    if directory is not None:
        await directory.close()

    await dispose_engine()

    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError         → 400 Bad Request (client can fix the input)
        EventPublishError       → 400 Bad Request (event too large for a batch)
        NotFoundError           → 404 Not Found
        UpstreamServiceError    → 502 Bad Gateway
        DatabaseError           → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error (unexpected errors)

    Security: handlers NEVER expose stack traces or SQL in the response body.
    Details are logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(EventPublishError)
    async def handle_event_publish_error(request: Request, exc: EventPublishError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=400,
            content={
                "error": "event_publish_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        """Requested resource doesn't exist."""
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream_error(request: Request, exc: UpstreamServiceError):
        rid = request_id_var.get("")
        logger.error("[%s] Upstream service error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=502,
            content={
                "error": "upstream_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Generic message to the user; details logged server-side."""
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with a request ID; stack trace logged only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

SERVICE_TITLES = {
    "inventory": "Stockroom Inventory API",
    "orders": "Stockroom Order API",
    "users": "Stockroom User API",
    "web": "Stockroom Web",
}


def create_app(service: str) -> FastAPI:
    """
    Create and configure the FastAPI application for `service`.

    Args:
        service: One of inventory, orders, users, web.

    Raises:
        ValueError: unknown service name.
    """
    if service not in SERVICE_TITLES:
        raise ValueError(
            f"Unknown service '{service}'. Must be one of: {sorted(SERVICE_TITLES)}"
        )

    app = FastAPI(
        title=SERVICE_TITLES[service],
        version=__version__,
        # Interactive docs only while developing
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.service = service

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute: RequestID → Logging → route
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    if service == "inventory":
        app.include_router(inventory.router)
    elif service == "orders":
        app.include_router(orders.router)
    elif service == "users":
        app.include_router(users.router)
    elif service == "web":
        app.include_router(web.router)
        app.mount("/static", StaticFiles(directory=str(web.STATIC_DIR)), name="static")
        # After the JSON handlers so the HTML pages replace their catch-alls
        web.register_error_pages(app)

        if not settings.is_development:
            @app.middleware("http")
            async def add_hsts_header(request: Request, call_next):
                response = await call_next(request)
                response.headers.update(web.HSTS_HEADERS)
                return response

    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `stockroom.main:app` to be importable
app = create_app(settings.service)
