"""Policy administration API schemas."""

from pydantic import BaseModel, Field, model_validator


class ProjectPolicyUpdateRequest(BaseModel):
    """Partial update of the project policy; omitted fields are unchanged."""

    block_all_users: bool | None = None
    block_family_members: bool | None = None
    monthly_limit: int | None = Field(default=None, ge=0)
    validity_duration_hours: int | None = Field(default=None, ge=1, le=24 * 31)


class UnitPolicyUpdateRequest(BaseModel):
    """Partial update of a unit policy.

    Send ``monthly_limit: null`` explicitly to remove the unit override.
    """

    blocked: bool | None = None
    blocked_reason: str | None = Field(default=None, max_length=500)
    monthly_limit: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def reason_needs_block(self) -> "UnitPolicyUpdateRequest":
        if self.blocked_reason and self.blocked is not True:
            raise ValueError("blocked_reason is only accepted together with blocked=true")
        return self

    @property
    def clear_monthly_limit(self) -> bool:
        return "monthly_limit" in self.model_fields_set and self.monthly_limit is None


class UnitUsageResponse(BaseModel):
    unit: str
    used_this_month: int
