"""Liveness and readiness payloads."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str


class ReadinessResponse(BaseModel):
    """GET /health/ready; 503 when any check is false."""

    status: Literal["ready", "not_ready"]
    checks: dict[str, bool] = Field(
        ..., description="Per-dependency readiness (firestore, storage)"
    )
