"""
Vault API Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       lifespan() builds the AppContext on startup and disposes it on
       shutdown; run() is the console entry point.
Who:   uvicorn (`vault_api.main:app` or the `vault-api` script), tests.

Lifecycle:
    Startup:
    1. Configure logging
    2. Build AppContext (unless one was injected, e.g. by tests)
    3. Create the backups directory (failure aborts startup)
    4. Create missing tables (failure is logged; /health reports it)

    Shutdown (SIGINT / SIGTERM via uvicorn):
    1. Dispose the database engine (close all connections)
    In-flight requests are not drained.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vault_api import __version__
from vault_api.config import Settings, settings
from vault_api.context import AppContext
from vault_api.exceptions import (
    ClientInputError,
    FilesystemError,
    NotFoundError,
    StoreError,
)
from vault_api.middleware.logging import RequestLoggingMiddleware
from vault_api.middleware.request_id import RequestIDMiddleware, request_id_var
from vault_api.routes import health, reports, vault

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Vault API %s starting up...", __version__)

    ctx: Optional[AppContext] = getattr(app.state, "context", None)
    if ctx is None:
        ctx = AppContext.from_settings(app_settings)
        app.state.context = ctx

    # Raises (and aborts startup) if the backups directory cannot be created
    await ctx.startup()

    logger.info("Server ready at http://%s:%d", app_settings.host, app_settings.port)
    logger.info("=" * 60)

    yield

    logger.info("Vault API shutting down...")
    await ctx.shutdown()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and JSON bodies.

    Handler table:
        ClientInputError        → 400
        RequestValidationError  → 400 (malformed body / parameters)
        NotFoundError           → 404
        routing 404 / 405       → 404 {error, path, method}
        StoreError              → 500
        FilesystemError         → 500
        Exception (fallback)    → 500, traceback logged

    Server-side context (paths, driver errors) is logged, not returned.
    """

    @app.exception_handler(ClientInputError)
    async def handle_client_input(request: Request, exc: ClientInputError):
        logger.warning("[%s] Client input error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        problems = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        logger.warning("[%s] Malformed request: %s", request_id_var.get(""), problems)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", "Invalid request", {"errors": problems}),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Endpoint not found",
                    "path": request.url.path,
                    "method": request.method,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("http_error", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        rid = request_id_var.get("")
        logger.error("[%s] Store error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("store_error", exc.message),
        )

    @app.exception_handler(FilesystemError)
    async def handle_filesystem_error(request: Request, exc: FilesystemError):
        rid = request_id_var.get("")
        logger.error("[%s] Filesystem error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("filesystem_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        app_settings: Defaults to the module-level `settings`.
        context: A ready AppContext. When given, lifespan uses it instead of
                 building one (tests inject a SQLite-backed context).
    """
    app_settings = app_settings or (context.settings if context else settings)

    app = FastAPI(
        title="Vault API",
        description=(
            "Create, read, update, delete, search and sort vault entries, "
            "with automatic snapshot backups, export and statistics."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    if context is not None:
        app.state.context = context

    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(vault.router)
    app.include_router(reports.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point; exits non-zero if the port cannot be bound."""
    uvicorn.run(
        "vault_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
