"""FastAPI application entry point (wiring only).

Settings are read inside create_app() so tests can set the environment
and clear the get_settings cache first.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gatepass.api.v1 import api_router
from gatepass.core.config import get_settings
from gatepass.core.exception_handlers import register_exception_handlers
from gatepass.core.lifespan import create_lifespan
from gatepass.core.limiter import limiter
from gatepass.middleware import RequestIDMiddleware, TimeoutMiddleware
from gatepass.shared.telemetry import setup_logging


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.limiter = limiter
    register_exception_handlers(app)

    # Last added runs first: timeout wraps request ID, which wraps CORS.
    origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST", "PUT"],
            allow_headers=[settings.user_header_name, settings.request_id_header, "Content-Type"],
            expose_headers=[settings.request_id_header],
        )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
