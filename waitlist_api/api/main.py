"""Waitlist FastAPI application — entry point for the API server."""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import get_settings
from waitlist_api.api.middleware import log_requests
from waitlist_api.api.responses import register_exception_handlers, send_response
from waitlist_api.core.logging import get_logger, setup_logging
from waitlist_api.data.db import close_engine, get_engine, init_schema

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup/shutdown lifecycle — initialize DB engine, close on exit."""
    log.info("api_starting")
    engine = await get_engine()
    if get_settings().db_auto_create:
        await init_schema(engine)
    yield
    await close_engine()
    log.info("api_shutdown")


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    setup_logging(
        settings.log_level,
        json_output=settings.log_json or settings.waitlist_env == "prod",
    )

    app = FastAPI(
        title="Waitlist API",
        description="Multi-tenant waitlist management — REST API",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
    register_exception_handlers(app)

    # Register routers
    from waitlist_api.api.routes.health import router as health_router
    from waitlist_api.api.routes.projects import router as projects_router
    from waitlist_api.api.routes.waitlist import router as waitlist_router

    app.include_router(health_router, prefix="/api")
    app.include_router(projects_router, prefix="/api")
    app.include_router(waitlist_router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return send_response(200, {"message": "Health Check for 'waitlist-api' APIs."})

    return app
