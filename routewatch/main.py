"""RouteWatch FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan — @asynccontextmanager startup/shutdown sequence
  - /health router — delegated to routewatch/health.py
  - /        route  — service discovery root
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()          → app.state.config
  2. create_route_store()   → app.state.route_store
  3. create_http_client()   → app.state.http_client
  4. app.state.ready = True

Shutdown sequence (reverse):
  app.state.ready = False → close HTTP client → close route store
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter

from routewatch import __version__
from routewatch.api.routes import router as routes_router
from routewatch.checks.executor import create_http_client
from routewatch.config import Config, load_config
from routewatch.health import router as health_router
from routewatch.middleware import BodySizeLimitMiddleware
from routewatch.store.factory import create_route_store
from routewatch.store.protocol import RouteStore
from routewatch.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)


root_router = APIRouter(tags=["root"])


# ─── Dependencies ─────────────────────────────────────────────────────────────


async def require_ready(request: Request) -> None:
    """FastAPI dependency: raises HTTP 503 if app.state.ready is not True.

    The /health endpoint handles the 503 case itself.
    """
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(status_code=503, detail="RouteWatch is starting up")


@root_router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint — service identity / discovery."""
    return {
        "service": "RouteWatch",
        "version": __version__,
        "health": "/health",
        "routes": "/api/routes",
    }


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open shared resources on startup and release them on shutdown.

    Raises:
        SystemExit:   invalid config (from load_config()).
        RuntimeError: incompatible route store schema. Startup is refused.
    """
    logger.info("RouteWatch starting up...")

    config: Config = load_config()
    app.state.config = config

    route_store: RouteStore = await create_route_store(config)
    app.state.route_store = route_store

    # Shared by every check. NEVER instantiated per-request.
    http_client: httpx.AsyncClient = create_http_client(config.checks)
    app.state.http_client = http_client
    logger.info(
        "HTTP check client created",
        timeout_s=config.checks.timeout_s,
        max_redirects=config.checks.max_redirects,
    )

    app.state.ready = True
    logger.info("RouteWatch ready", host=config.server.host, port=config.server.port)

    yield

    logger.info("RouteWatch shutting down...")
    app.state.ready = False

    try:
        await http_client.aclose()
        logger.info("HTTP check client closed")
    except Exception as exc:
        logger.warning("HTTP check client close error (non-fatal)", error=str(exc))

    await route_store.close()
    logger.info("RouteWatch shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the RouteWatch FastAPI application.

    Call this function directly in tests to get an isolated app instance:
        app = create_app()

    Returns:
        Configured FastAPI application with lifespan, routers, and middleware.
    """
    application = FastAPI(
        title="RouteWatch",
        description="HTTP route monitoring with outbound SSRF protection",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None,
        openapi_url="/openapi.json" if DEBUG else None,
    )

    # /health returns 503 until the lifespan sets this
    application.state.ready = False

    application.add_middleware(BodySizeLimitMiddleware)

    application.include_router(root_router)
    application.include_router(health_router)
    application.include_router(routes_router, dependencies=[Depends(require_ready)])

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info(
            "Invalid request body",
            path=str(request.url.path),
            errors=len(exc.errors()),
        )
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @application.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return application


# ─── Module-Level App (for uvicorn) ───────────────────────────────────────────
#   uvicorn routewatch.main:app --host 127.0.0.1 --port 4343

app = create_app()
