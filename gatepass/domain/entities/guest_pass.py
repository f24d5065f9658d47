"""GuestPass domain entity.

Represents an issued guest credential, independent of persistence.
"""

import hmac
from dataclasses import dataclass, field
from datetime import datetime

from gatepass.domain.enums import PassStatus
from gatepass.domain.exceptions import ValidationException
from gatepass.shared.utils.datetime import isoformat_z


@dataclass
class GuestPass:
    """Domain entity for a guest pass.

    The verification token is fixed at creation. ``used`` moves from False
    to True once, through redemption. ``deleted`` is owned by an external
    moderation flow and only affects quota counting.
    """

    id: str
    project_id: str
    user_id: str
    user_name: str
    unit: str
    guest_name: str
    purpose: str
    valid_from: datetime
    valid_until: datetime
    created_at: datetime
    updated_at: datetime
    verification_token: str
    phone_number: str | None = None
    sent_status: bool = False
    sent_at: datetime | None = None
    used: bool = False
    used_at: datetime | None = None
    deleted: bool = False
    credential_locator: str | None = None
    # Store-assigned version (Firestore updateTime) of the snapshot this entity was read from.
    version: str | None = field(default=None, compare=False, repr=False)
    # Key of the stored document; older records may be keyed differently from id.
    document_id: str | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate pass invariants. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Pass ID is required", field="id")
        if not self.verification_token:
            raise ValidationException(
                "Verification token is required", field="verification_token"
            )
        if self.valid_until < self.valid_from:
            raise ValidationException(
                "valid_until must not precede valid_from", field="valid_until"
            )

    def is_expired(self, now: datetime) -> bool:
        """True once now is strictly past valid_until."""
        return now > self.valid_until

    def token_matches(self, candidate: str) -> bool:
        """Constant-time comparison against the stored verification token."""
        return hmac.compare_digest(
            self.verification_token.encode("utf-8"), candidate.encode("utf-8")
        )

    def status(self, now: datetime) -> PassStatus:
        """Observable state; EXPIRED is derived from the clock, never stored."""
        if self.used:
            return PassStatus.USED
        if self.is_expired(now):
            return PassStatus.EXPIRED
        if self.sent_status:
            return PassStatus.SENT
        return PassStatus.ISSUED

    def credential_payload(self) -> dict[str, str]:
        """Payload encoded into the scannable artifact."""
        return {
            "passId": self.id,
            "projectId": self.project_id,
            "guestName": self.guest_name,
            "validUntil": isoformat_z(self.valid_until),
            "createdAt": isoformat_z(self.created_at),
            "verificationToken": self.verification_token,
        }
