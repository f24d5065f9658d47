"""Application lifespan: open shared infrastructure on startup, release it on shutdown.

Holds no business logic. The Firestore client and the credential store are
process-wide; tracing is optional.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from gatepass.core.config import get_settings
from gatepass.infrastructure.external.storage import create_credential_store
from gatepass.infrastructure.firebase import close_firestore, open_firestore
from gatepass.shared.telemetry import start_tracing, stop_tracing

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()

    if not open_firestore(settings):
        logger.warning("No Firestore credentials; guest pass routes will answer 503")
    app.state.object_store = create_credential_store(settings)
    logger.info(
        "Credentials stored via %s backend under %r",
        settings.storage_backend,
        settings.storage_prefix,
    )
    if settings.telemetry_enabled:
        start_tracing(app, settings)

    try:
        yield
    finally:
        await close_firestore()
        if settings.telemetry_enabled:
            stop_tracing()
        logger.info("Shutdown complete")
