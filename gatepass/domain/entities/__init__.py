"""Domain entities: guest passes and the policies that gate them."""

from gatepass.domain.entities.guest_pass import GuestPass
from gatepass.domain.entities.policy import (
    DEFAULT_PROJECT_POLICY,
    NOT_BLOCKED,
    LegacyUserBlock,
    Membership,
    ProjectPolicy,
    UnitPolicy,
    UserAccount,
    resolve_monthly_limit,
)

__all__ = [
    "DEFAULT_PROJECT_POLICY",
    "NOT_BLOCKED",
    "GuestPass",
    "LegacyUserBlock",
    "Membership",
    "ProjectPolicy",
    "UnitPolicy",
    "UserAccount",
    "resolve_monthly_limit",
]
