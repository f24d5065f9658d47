"""Domain enumerations for gatepass.

Reason codes are part of the external contract: callers render guidance
from them, not from messages.
"""

from enum import Enum


class EligibilityReason(str, Enum):
    """Machine-readable outcome of an eligibility check."""

    ELIGIBLE = "eligible"
    BLOCKED = "blocked"
    PROJECT_BLOCKED = "project_blocked"
    FAMILY_MEMBERS_BLOCKED = "family_members_blocked"
    UNIT_BLOCKED = "unit_blocked"
    LIMIT_REACHED = "limit_reached"

    @property
    def message(self) -> str:
        """Human-readable description shown with the reason code."""
        return _ELIGIBILITY_MESSAGES[self]


_ELIGIBILITY_MESSAGES = {
    EligibilityReason.ELIGIBLE: "User is eligible to generate passes in this project",
    EligibilityReason.BLOCKED: "You are blocked from generating guest passes in this project",
    EligibilityReason.PROJECT_BLOCKED: (
        "Guest pass generation is currently disabled for all users in this project"
    ),
    EligibilityReason.FAMILY_MEMBERS_BLOCKED: (
        "Guest pass generation is currently disabled for family members. "
        "Only property owners can generate passes."
    ),
    EligibilityReason.UNIT_BLOCKED: "Guest pass generation is blocked for your unit",
    EligibilityReason.LIMIT_REACHED: "You have reached your monthly limit of passes for this project",
}


class RedeemReason(str, Enum):
    """Outcome of a redemption attempt."""

    REDEEMED = "redeemed"
    NOT_FOUND = "not_found"
    INVALID_TOKEN = "invalid_token"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"

    @property
    def message(self) -> str:
        return _REDEEM_MESSAGES[self]


_REDEEM_MESSAGES = {
    RedeemReason.REDEEMED: "Pass verified and marked as used",
    RedeemReason.NOT_FOUND: "This guest pass does not exist",
    RedeemReason.INVALID_TOKEN: "Invalid verification token",
    RedeemReason.ALREADY_USED: "This pass has already been used",
    RedeemReason.EXPIRED: "This pass has expired",
}


class PassStatus(str, Enum):
    """Observable state of a guest pass. EXPIRED is computed, never stored."""

    ISSUED = "issued"
    SENT = "sent"
    USED = "used"
    EXPIRED = "expired"


class QuotaScope(str, Enum):
    """Pass field used to scope a quota count."""

    USER = "userId"
    UNIT = "unit"
