"""Guest pass policy entities: project, unit, deprecated per-user scope, memberships.

Policies are read-only snapshots of the stored documents. Absent values stay
None so the resolver can tell "not configured" apart from "configured".
"""

from dataclasses import dataclass, field
from datetime import datetime

from gatepass.core.constants import (
    DEFAULT_MONTHLY_LIMIT,
    DEFAULT_VALIDITY_DURATION_HOURS,
)


@dataclass(frozen=True)
class ProjectPolicy:
    """Global per-project policy."""

    block_all_users: bool = False
    block_family_members: bool = False
    monthly_limit: int | None = None
    validity_duration_hours: int | None = None

    @property
    def has_monthly_limit(self) -> bool:
        # Zero or negative project limits are treated as unset.
        return self.monthly_limit is not None and self.monthly_limit > 0

    @property
    def effective_validity_hours(self) -> int:
        if self.validity_duration_hours is not None and self.validity_duration_hours > 0:
            return self.validity_duration_hours
        return DEFAULT_VALIDITY_DURATION_HOURS


# Applied when the project document is missing or unreadable (fail-open).
DEFAULT_PROJECT_POLICY = ProjectPolicy()


@dataclass(frozen=True)
class UnitPolicy:
    """Per-unit override policy plus the informational usage aggregate."""

    unit: str
    blocked: bool = False
    blocked_reason: str | None = None
    blocked_at: datetime | None = None
    monthly_limit: int | None = None
    used_this_month: int = 0
    usage_period: str | None = None
    last_pass_created_by: str | None = None
    last_pass_created_by_name: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class LegacyUserBlock:
    """Deprecated per-user-per-project block.

    Kept for projects configured before unit policies existed. Read only
    while Settings.legacy_user_block_enabled is on.
    """

    blocked: bool = False
    blocked_reason: str | None = None
    blocked_at: datetime | None = None


NOT_BLOCKED = LegacyUserBlock()


def resolve_monthly_limit(project: ProjectPolicy, unit: UnitPolicy | None) -> int:
    """Single effective monthly limit: unit override, else project, else default."""
    if unit is not None and unit.monthly_limit is not None:
        return unit.monthly_limit
    if project.has_monthly_limit:
        return project.monthly_limit  # type: ignore[return-value]
    return DEFAULT_MONTHLY_LIMIT


@dataclass(frozen=True)
class Membership:
    """A user's membership in one project."""

    project_id: str
    unit: str = ""
    role: str = ""


@dataclass(frozen=True)
class UserAccount:
    """User read-model: identity plus project memberships.

    unit and role at the top level are older single-project fields used as
    fallbacks when a membership entry omits them.
    """

    id: str
    name: str = ""
    email: str = ""
    unit: str = ""
    role: str = ""
    memberships: tuple[Membership, ...] = field(default_factory=tuple)

    def membership_for(self, project_id: str) -> Membership | None:
        """Return the membership for project_id with unit/role fallbacks applied."""
        for m in self.memberships:
            if m.project_id == project_id:
                return Membership(
                    project_id=project_id,
                    unit=m.unit or self.unit,
                    role=m.role or self.role,
                )
        return None
