"""Liveness and readiness probes. Never touch the store beyond checking the client exists."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gatepass.core.config import get_settings
from gatepass.infrastructure.firebase import get_firestore_client
from gatepass.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(version=get_settings().app_version)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse, "description": "A dependency is not ready"}},
)
async def readiness_check(request: Request) -> JSONResponse:
    checks = {
        "firestore": get_firestore_client() is not None,
        "storage": getattr(request.app.state, "object_store", None) is not None,
    }
    ready = all(checks.values())
    body = ReadinessResponse(status="ready" if ready else "not_ready", checks=checks)
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
