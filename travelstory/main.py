"""
TravelStory Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the ServiceContext, registers middleware,
       exception handlers, routers and static mounts, and returns the app.
Who:   uvicorn (`uvicorn travelstory.main:app`), `python -m travelstory`, tests.

Application Layout:
    Middleware:   RequestID → Logging → GZip → CORS
    Routes:       accounts, images, travel stories, health
    Static:       /uploads (user images), /assets (placeholder image)
    Errors:       TravelStoryError subclasses and request validation errors
                  → {"error": true, "message": ...}

Lifecycle:
    Startup:   logging, configuration check, directories (+ schema if configured)
    Shutdown:  dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from travelstory import __version__
from travelstory.config import Settings, get_settings
from travelstory.context import ServiceContext
from travelstory.exceptions import TravelStoryError
from travelstory.middleware.logging import RequestLoggingMiddleware
from travelstory.middleware.request_id import RequestIDMiddleware, request_id_var
from travelstory.routes import auth, health, images, stories

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Quieten per-operation library chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    context: ServiceContext = app.state.context
    settings = context.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("TravelStory Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Development defaults still let the server start
        logger.warning("Configuration warning: %s", str(e))

    await context.startup()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("TravelStory Backend shutting down...")
    await context.shutdown()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all runs outside RequestIDMiddleware, after the ContextVar is reset
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def _error_body(
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: str = "",
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": True,
        "message": message,
        "request_id": request_id or request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


def _describe_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    problems = []
    for err in errors:
        # loc is ("body", "title") / ("query", "startDate"); drop the source
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        problems.append({
            "field": ".".join(loc) or "body",
            "message": "is required" if err.get("type") == "missing" else err.get("msg", "is invalid"),
        })
    return problems


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP status codes and the shared JSON error body.

    Handler hierarchy:
        RequestValidationError   → 400, every field problem listed
        TravelStoryError (4xx)   → exc.status_code, message + context
        TravelStoryError (5xx)   → exc.status_code, message only (context logged)
        Exception (fallback)     → 500, generic message, traceback logged
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        problems = _describe_validation_errors(exc.errors())
        missing = [p["field"] for p in problems if p["message"] == "is required"]
        if missing and len(missing) == len(problems):
            message = f"Missing required fields: {', '.join(missing)}"
        else:
            message = "Invalid request: " + "; ".join(f"{p['field']} {p['message']}" for p in problems)
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(status_code=400, content=_error_body(message, {"problems": problems}))

    @app.exception_handler(TravelStoryError)
    async def handle_app_error(request: Request, exc: TravelStoryError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.context),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: never return a stack trace to the client."""
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("An unexpected error occurred. Please try again.", request_id=rid),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Explicit configuration; defaults to the environment (get_settings()).

    Returns:
        A FastAPI instance owning its own ServiceContext (app.state.context).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="TravelStory API",
        description="Personal travel journal: accounts, stories, image uploads, search.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = ServiceContext(settings)

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(images.router)
    app.include_router(stories.router)
    app.include_router(health.router)

    # ── Static files ──────────────────────────────────────────────────────
    # Directories are created at startup, so they may not exist yet here
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")
    app.mount("/assets", StaticFiles(directory=settings.assets_dir, check_dir=False), name="assets")

    return app


app = create_app()
