"""Carbon Footprint API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map every failure to the {error, message} JSON shape
    - Middleware order, outermost first: CORS → security headers → rate limit → routes
    - Settings are attached to app.state so dependencies read the app's own config

Design Decisions:
    - create_app(settings) factory: tests build isolated apps (own limiter storage,
      own environment) while `app` stays importable for `uvicorn carbon_api.main:app`
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from carbon_api.api.docs import DOCS_URL, install_docs
from carbon_api.api.error_handlers import register_error_handlers
from carbon_api.api.routes import estimate, health
from carbon_api.config import Settings, get_settings
from carbon_api.infrastructure.observability import setup_logging
from carbon_api.infrastructure.security import install_security

logger = logging.getLogger(__name__)

API_TITLE = "Carbon Footprint API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    logger.info(
        f"Carbon Footprint API started in {settings.environment} mode",
        extra={"environment": settings.environment},
    )
    logger.info(f"API documentation available at {settings.public_url}{DOCS_URL}")
    yield
    logger.info("Carbon Footprint API shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build a fully wired application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=API_TITLE,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    install_security(app, settings)
    # CORS — configured from settings, not hardcoded
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes — explicit registration
    app.include_router(health.router)
    app.include_router(estimate.router)
    install_docs(app, settings)

    register_error_handlers(app, settings)
    return app


app = create_app()
