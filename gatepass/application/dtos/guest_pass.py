"""DTOs for guest pass use cases (no dependency on Firestore or presentation schemas)."""

from dataclasses import dataclass
from datetime import datetime

from gatepass.domain.entities.guest_pass import GuestPass
from gatepass.domain.entities.policy import UserAccount
from gatepass.domain.enums import EligibilityReason, RedeemReason


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of walking the policy hierarchy for one user in one project.

    monthly_limit is resolved even for blocked outcomes so status views can
    show it.
    """

    allowed: bool
    reason: EligibilityReason
    monthly_limit: int
    user: UserAccount
    unit: str = ""
    role: str = ""
    blocked_reason: str | None = None

    @property
    def message(self) -> str:
        return self.reason.message


@dataclass(frozen=True)
class PeriodUsage:
    """Pass counts for a scope within the current quota period."""

    active: int
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.active + self.deleted


@dataclass(frozen=True)
class LedgerEntry:
    """Quota reservation counter for (project, user, period)."""

    reserved: int
    version: str | None = None


@dataclass(frozen=True)
class EligibilityResult:
    """Answer to "can this user issue a pass right now?".

    used_this_month and remaining_quota are None for blocked outcomes.
    """

    allowed: bool
    reason_code: str
    message: str
    monthly_limit: int
    used_this_month: int | None = None
    remaining_quota: int | None = None
    unit: str = ""


@dataclass(frozen=True)
class RenderedCredential:
    """Scannable artifact bytes produced from the credential payload."""

    content: bytes
    content_type: str
    extension: str


@dataclass(frozen=True)
class IssueResult:
    pass_id: str
    credential_locator: str
    guest_pass: GuestPass


@dataclass(frozen=True)
class RedeemResult:
    """Redemption outcome. Every outcome is a result, never an exception."""

    success: bool
    reason: RedeemReason
    pass_id: str
    guest_name: str | None = None
    purpose: str | None = None
    used_at: datetime | None = None

    @property
    def reason_code(self) -> str:
        return self.reason.value

    @property
    def message(self) -> str:
        return self.reason.message


@dataclass(frozen=True)
class UserStatus:
    """Per-user quota view within a project."""

    user_id: str
    name: str
    email: str
    unit: str
    blocked: bool
    block_reason: str | None
    monthly_limit: int
    used_this_month: int
    remaining_quota: int


@dataclass(frozen=True)
class ProjectPolicyUpdate:
    """Partial project policy change; None fields are left untouched."""

    block_all_users: bool | None = None
    block_family_members: bool | None = None
    monthly_limit: int | None = None
    validity_duration_hours: int | None = None


@dataclass(frozen=True)
class UnitPolicyUpdate:
    """Partial unit policy change; None fields are left untouched.

    clear_monthly_limit removes the unit override so the project limit applies.
    """

    blocked: bool | None = None
    blocked_reason: str | None = None
    monthly_limit: int | None = None
    clear_monthly_limit: bool = False
