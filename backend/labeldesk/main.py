"""
LabelDesk Backend: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the LabelDatabase → LabelStore → LabelService
       chain, stores it on app.state, and registers middleware, exception
       handlers and routes.
Who:   uvicorn (labeldesk.main:app), the `labeldesk` console script, tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌────────┐ ┌──────┐ ┌─────────┐ ┌───────────────┐  │
    │  │ Req ID │→│ CORS │→│ Logging │→│ Catch-all 500 │  │
    │  └────────┘ └──────┘ └─────────┘ └───────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  GET /api/labels │ POST /api/labels │ GET /health   │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ Ownership→403 │ Storage→500       │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Connect to the database and create the labels table if missing;
       on failure raise StartupError, which aborts the server
    Shutdown:
    1. Dispose the engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from labeldesk import __version__
from labeldesk.config import Settings, settings as default_settings
from labeldesk.database import LabelDatabase
from labeldesk.exceptions import (
    LabelDeskError,
    OwnershipConflictError,
    StartupError,
    StorageUnavailableError,
    ValidationError,
)
from labeldesk.middleware.cors import CORSHeadersMiddleware
from labeldesk.middleware.errors import CatchAllErrorMiddleware
from labeldesk.middleware.logging import RequestLoggingMiddleware
from labeldesk.middleware.request_id import RequestIDMiddleware, request_id_var
from labeldesk.routes import health, labels
from labeldesk.services.label_service import LabelService
from labeldesk.services.label_store import LabelStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    Called once from the lifespan, before the database is touched.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Access lines come from labeldesk.access instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if log_level == "DEBUG" else logging.WARNING
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect the label database on startup, release it on shutdown.

    A database that cannot be reached at startup is fatal: StartupError
    propagates out of the lifespan and uvicorn exits instead of serving.
    """
    app_settings: Settings = app.state.settings
    database: LabelDatabase = app.state.database

    setup_logging(app_settings.log_level)
    logger.info("LabelDesk Backend %s starting up...", __version__)

    try:
        await database.connect()
    except Exception as e:
        logger.critical("Database connection error: %s", e)
        raise StartupError(context={"error_type": type(e).__name__}) from e

    logger.info(
        "Server ready at http://%s:%d (allowed origin: %s)",
        app_settings.backend_host,
        app_settings.backend_port,
        app_settings.allowed_origin,
    )

    yield

    logger.info("LabelDesk Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, message: str, **extra) -> JSONResponse:
    content = {"error": message, "request_id": request_id_var.get("")}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes.

    Handler hierarchy:
        ValidationError           → 400 (required fields missing)
        RequestValidationError    → 400 (body is not a valid label write)
        OwnershipConflictError    → 403
        StorageUnavailableError   → 500 (operation message only)
        LabelDeskError (base)     → 500
        anything else             → CatchAllErrorMiddleware → 500

    Context dicts and driver errors are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.warning("[%s] Invalid request body on %s: %s", request_id_var.get(""), request.url.path, details)
        return _error_response(400, "Invalid request body", details=details)

    @app.exception_handler(OwnershipConflictError)
    async def handle_ownership_conflict(request: Request, exc: OwnershipConflictError):
        logger.warning("[%s] Ownership conflict: %s", request_id_var.get(""), exc.context)
        return _error_response(403, exc.message)

    @app.exception_handler(StorageUnavailableError)
    async def handle_storage_error(request: Request, exc: StorageUnavailableError):
        logger.error("[%s] Storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, exc.message)

    @app.exception_handler(LabelDeskError)
    async def handle_app_error(request: Request, exc: LabelDeskError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, exc.message)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[LabelDatabase] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; the module-level settings when omitted
        database: Pre-built database handle (tests pass one bound to a
                  temporary SQLite file); built from settings when omitted

    Returns:
        A FastAPI app whose state holds settings, database, label_store and
        label_service.
    """
    settings = settings or default_settings
    database = database or LabelDatabase.from_settings(settings)
    store = LabelStore(database)

    app = FastAPI(
        title="LabelDesk API",
        description="Per-image label and notes storage for annotation teams.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.label_store = store
    app.state.label_service = LabelService(store)

    # Last added runs first: RequestID → CORS → Logging → CatchAll
    app.add_middleware(CatchAllErrorMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CORSHeadersMiddleware, allowed_origin=settings.allowed_origin)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(labels.router)
    app.include_router(health.router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "labeldesk.main:app",
        host=default_settings.backend_host,
        port=default_settings.backend_port,
        log_level=default_settings.log_level.lower(),
    )


app = create_app()
