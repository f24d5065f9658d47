"""Pydantic request/response schemas for the API."""

from gatepass.schemas.guest_pass import (
    EligibilityResponse,
    GuestPassCreateRequest,
    GuestPassCreateResponse,
    GuestPassListResponse,
    GuestPassResponse,
    MarkSentResponse,
    RedeemRequest,
    RedeemResponse,
    UserStatusResponse,
)
from gatepass.schemas.health import HealthResponse
from gatepass.schemas.policy import (
    ProjectPolicyUpdateRequest,
    UnitPolicyUpdateRequest,
    UnitUsageResponse,
)

__all__ = [
    "EligibilityResponse",
    "GuestPassCreateRequest",
    "GuestPassCreateResponse",
    "GuestPassListResponse",
    "GuestPassResponse",
    "HealthResponse",
    "MarkSentResponse",
    "ProjectPolicyUpdateRequest",
    "RedeemRequest",
    "RedeemResponse",
    "UnitPolicyUpdateRequest",
    "UnitUsageResponse",
    "UserStatusResponse",
]
