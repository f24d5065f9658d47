"""Guest pass API schemas.

Responses never carry the verification token; it only travels inside the
stored credential artifact.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from gatepass.application.dtos.guest_pass import (
    EligibilityResult,
    RedeemResult,
    UserStatus,
)
from gatepass.domain.entities.guest_pass import GuestPass
from gatepass.shared.utils.datetime import utc_now


class GuestPassCreateRequest(BaseModel):
    """Payload for issuing a guest pass."""

    guest_name: str = Field(..., min_length=1, max_length=200)
    purpose: str = Field(..., min_length=1, max_length=500)
    user_name: str | None = Field(default=None, max_length=200)
    phone_number: str | None = Field(default=None, max_length=32)

    @field_validator("guest_name", "purpose")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class RedeemRequest(BaseModel):
    verification_token: str = Field(..., max_length=256)


class GuestPassResponse(BaseModel):
    """Public view of a pass."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    user_id: str
    user_name: str
    unit: str
    guest_name: str
    purpose: str
    phone_number: str | None = None
    valid_from: AwareDatetime
    valid_until: AwareDatetime
    created_at: AwareDatetime
    sent_status: bool
    sent_at: AwareDatetime | None = None
    used: bool
    used_at: AwareDatetime | None = None
    status: str
    credential_locator: str | None = None

    @classmethod
    def from_entity(cls, guest_pass: GuestPass, now: datetime | None = None) -> "GuestPassResponse":
        return cls(
            id=guest_pass.id,
            project_id=guest_pass.project_id,
            user_id=guest_pass.user_id,
            user_name=guest_pass.user_name,
            unit=guest_pass.unit,
            guest_name=guest_pass.guest_name,
            purpose=guest_pass.purpose,
            phone_number=guest_pass.phone_number,
            valid_from=guest_pass.valid_from,
            valid_until=guest_pass.valid_until,
            created_at=guest_pass.created_at,
            sent_status=guest_pass.sent_status,
            sent_at=guest_pass.sent_at,
            used=guest_pass.used,
            used_at=guest_pass.used_at,
            status=guest_pass.status(now or utc_now()).value,
            credential_locator=guest_pass.credential_locator,
        )


class GuestPassCreateResponse(BaseModel):
    pass_id: str
    credential_locator: str
    guest_pass: GuestPassResponse


class GuestPassListResponse(BaseModel):
    items: list[GuestPassResponse]
    total: int


class EligibilityResponse(BaseModel):
    """Eligibility answer; quota figures are null for blocked outcomes."""

    model_config = ConfigDict(from_attributes=True)

    allowed: bool
    reason_code: str
    message: str
    monthly_limit: int
    used_this_month: int | None = None
    remaining_quota: int | None = None
    unit: str = ""

    @classmethod
    def from_result(cls, result: EligibilityResult) -> "EligibilityResponse":
        return cls.model_validate(result)


class UserStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    name: str
    email: str
    unit: str
    blocked: bool
    block_reason: str | None = None
    monthly_limit: int
    used_this_month: int
    remaining_quota: int

    @classmethod
    def from_status(cls, status: UserStatus) -> "UserStatusResponse":
        return cls.model_validate(status)


class RedeemResponse(BaseModel):
    """Same envelope for every redemption outcome."""

    success: bool
    reason_code: str
    message: str
    pass_id: str
    guest_name: str | None = None
    purpose: str | None = None
    used_at: AwareDatetime | None = None

    @classmethod
    def from_result(cls, result: RedeemResult) -> "RedeemResponse":
        return cls(
            success=result.success,
            reason_code=result.reason_code,
            message=result.message,
            pass_id=result.pass_id,
            guest_name=result.guest_name,
            purpose=result.purpose,
            used_at=result.used_at,
        )


class MarkSentResponse(BaseModel):
    pass_id: str
    sent: bool = True
