"""One-time redemption of guest passes."""

from __future__ import annotations

from gatepass.application.dtos.guest_pass import RedeemResult
from gatepass.application.interfaces.repositories import IGuestPassRepository
from gatepass.application.interfaces.services import IClock
from gatepass.application.services.policy_resolver import require_identifier
from gatepass.core.constants import REDEEM_ATTEMPTS
from gatepass.domain.entities.guest_pass import GuestPass
from gatepass.domain.enums import RedeemReason
from gatepass.domain.exceptions import ConcurrencyConflictException
from gatepass.shared.telemetry.logging import get_logger
from gatepass.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)


class PassVerifier:
    """Validates a scanned credential and marks the pass used exactly once.

    Checks short-circuit in order: not_found, invalid_token, already_used,
    expired. The used flag is written with a compare-and-set on the version
    read, so of any number of concurrent redemptions at most one succeeds.
    """

    def __init__(
        self,
        passes: IGuestPassRepository,
        clock: IClock,
        *,
        max_attempts: int = REDEEM_ATTEMPTS,
    ) -> None:
        self.passes = passes
        self.clock = clock
        self.max_attempts = max_attempts

    @traced("pass.redeem")
    async def redeem(
        self, project_id: str, pass_id: str, verification_token: str
    ) -> RedeemResult:
        """Redeem a pass. Outcomes are returned, not raised.

        Raises:
            ValidationException: blank project_id or pass_id. A blank token is
                reported as invalid_token once the pass is found.
            ConcurrencyConflictException: the pass kept changing underneath us.
            StoreUnavailableError: the store could not be reached.
        """
        project_id = require_identifier(project_id, "project_id")
        pass_id = require_identifier(pass_id, "pass_id")
        verification_token = verification_token or ""

        for _ in range(self.max_attempts):
            guest_pass = await self.passes.find_by_pass_id(project_id, pass_id)
            outcome = self._check(pass_id, guest_pass, verification_token)
            if outcome is not None:
                return self._finish(project_id, outcome)

            used_at = self.clock.now()
            if await self.passes.mark_used(
                project_id,
                pass_id,
                used_at,
                expected_version=guest_pass.version,
                document_id=guest_pass.document_id,
            ):
                return self._finish(
                    project_id,
                    RedeemResult(
                        success=True,
                        reason=RedeemReason.REDEEMED,
                        pass_id=pass_id,
                        guest_name=guest_pass.guest_name,
                        purpose=guest_pass.purpose,
                        used_at=used_at,
                    ),
                )
            # Lost the compare-and-set; re-read and re-check.
            logger.info("Redemption of %s raced with another write; re-checking", pass_id)
        raise ConcurrencyConflictException("guest_pass", self.max_attempts)

    def _check(
        self, pass_id: str, guest_pass: GuestPass | None, token: str
    ) -> RedeemResult | None:
        if guest_pass is None:
            return RedeemResult(success=False, reason=RedeemReason.NOT_FOUND, pass_id=pass_id)
        if not guest_pass.token_matches(token):
            return RedeemResult(
                success=False, reason=RedeemReason.INVALID_TOKEN, pass_id=pass_id
            )
        if guest_pass.used:
            return RedeemResult(
                success=False,
                reason=RedeemReason.ALREADY_USED,
                pass_id=pass_id,
                guest_name=guest_pass.guest_name,
                purpose=guest_pass.purpose,
                used_at=guest_pass.used_at,
            )
        if guest_pass.is_expired(self.clock.now()):
            return RedeemResult(
                success=False,
                reason=RedeemReason.EXPIRED,
                pass_id=pass_id,
                guest_name=guest_pass.guest_name,
                purpose=guest_pass.purpose,
            )
        return None

    def _finish(self, project_id: str, result: RedeemResult) -> RedeemResult:
        add_span_attributes(reason=result.reason_code)
        if result.success:
            logger.info("Guest pass %s redeemed in project %s", result.pass_id, project_id)
        else:
            logger.info(
                "Guest pass %s rejected in project %s: %s",
                result.pass_id,
                project_id,
                result.reason_code,
            )
        return result
