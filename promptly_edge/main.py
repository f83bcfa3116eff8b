"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
Settings are loaded inside create_app() so tests can set env first.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from promptly_edge.api.v1.router import api_router
from promptly_edge.core.config import get_settings
from promptly_edge.core.exception_handlers import register_exception_handlers
from promptly_edge.core.lifespan import create_lifespan
from promptly_edge.shared.telemetry.logging import setup_logging
from promptly_edge.shared.telemetry.telemetry import build_telemetry


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    register_exception_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )
    app.include_router(api_router, prefix="/v1")

    telemetry = build_telemetry(settings)
    if telemetry is not None:
        telemetry.instrument_fastapi(app)
    app.state.telemetry = telemetry

    return app
