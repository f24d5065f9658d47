"""Monthly quota accounting and reservation.

Counting: passes created since the start of the current period, excluding
soft-deleted records.

Reservation: issuance is serialized per (project, user, period) through an
optimistic ledger entry. The effective usage seen by a reservation is

    max(active passes, reserved - deleted passes)

so a slot taken by an in-flight issuance is visible to every concurrent
issuer, while passes deleted by moderation still free their slot.
"""

from __future__ import annotations

from datetime import datetime

from gatepass.application.dtos.guest_pass import PeriodUsage
from gatepass.application.interfaces.repositories import (
    IGuestPassRepository,
    IQuotaLedger,
)
from gatepass.application.interfaces.services import IClock
from gatepass.core.constants import DEFAULT_QUOTA_RESERVATION_ATTEMPTS
from gatepass.domain.enums import EligibilityReason, QuotaScope
from gatepass.domain.exceptions import (
    ConcurrencyConflictException,
    EligibilityDeniedException,
)
from gatepass.shared.telemetry.logging import get_logger
from gatepass.shared.telemetry.tracing import traced
from gatepass.shared.utils.datetime import month_start, period_key

logger = get_logger(__name__)


def limit_reached_message(limit: int) -> str:
    return f"You have reached your monthly limit of {limit} passes for this project"


class QuotaCounter:
    """Counts period usage and reserves quota slots for issuance."""

    def __init__(
        self,
        passes: IGuestPassRepository,
        ledger: IQuotaLedger,
        clock: IClock,
        *,
        tz_name: str = "UTC",
        max_attempts: int = DEFAULT_QUOTA_RESERVATION_ATTEMPTS,
    ) -> None:
        self.passes = passes
        self.ledger = ledger
        self.clock = clock
        self.tz_name = tz_name
        self.max_attempts = max_attempts

    def current_period_start(self) -> datetime:
        """First instant of the current calendar month in the configured zone."""
        return month_start(self.clock.now(), self.tz_name)

    def period_key(self, period_start: datetime) -> str:
        return period_key(period_start, self.tz_name)

    async def usage(
        self,
        project_id: str,
        scope: QuotaScope,
        scope_value: str,
        period_start: datetime,
    ) -> PeriodUsage:
        """Active and soft-deleted pass counts for scope since period_start."""
        return await self.passes.count_since(project_id, scope, scope_value, period_start)

    async def count_active(
        self,
        project_id: str,
        scope: QuotaScope,
        scope_value: str,
        period_start: datetime | None = None,
    ) -> int:
        """Number of non-deleted passes for scope in the period (store errors propagate)."""
        if period_start is None:
            period_start = self.current_period_start()
        usage = await self.usage(project_id, scope, scope_value, period_start)
        return usage.active

    async def used_this_month(self, project_id: str, user_id: str) -> int:
        """User-scoped active count; 0 when the count cannot be read."""
        try:
            return await self.count_active(project_id, QuotaScope.USER, user_id)
        except Exception:
            logger.exception(
                "Quota count failed for user %s in project %s; assuming 0 used",
                user_id,
                project_id,
            )
            return 0

    @traced("quota.reserve")
    async def reserve(
        self,
        project_id: str,
        user_id: str,
        limit: int,
        period_start: datetime,
    ) -> int:
        """Take one quota slot for user_id in the period.

        Returns:
            Usage before the reservation.

        Raises:
            EligibilityDeniedException: limit_reached.
            ConcurrencyConflictException: lost the ledger race max_attempts times.
        """
        period = self.period_key(period_start)
        for attempt in range(1, self.max_attempts + 1):
            try:
                usage = await self.usage(project_id, QuotaScope.USER, user_id, period_start)
            except Exception:
                # The ledger alone still bounds issuance.
                logger.exception(
                    "Quota count failed during reservation for user %s in project %s",
                    user_id,
                    project_id,
                )
                usage = PeriodUsage(active=0, deleted=0)

            entry = await self.ledger.get(project_id, user_id, period)
            reserved = entry.reserved if entry is not None else 0
            used = max(usage.active, reserved - usage.deleted)
            if used >= limit:
                raise EligibilityDeniedException(
                    EligibilityReason.LIMIT_REACHED.value,
                    limit_reached_message(limit),
                    monthly_limit=limit,
                    used_this_month=used,
                )

            # Passes written outside the ledger (or before it existed) are folded in here.
            new_reserved = max(reserved, usage.total) + 1
            if entry is None:
                won = await self.ledger.create(project_id, user_id, period, new_reserved)
            else:
                won = await self.ledger.compare_and_set(
                    project_id, user_id, period, new_reserved, entry.version
                )
            if won:
                return used
            logger.info(
                "Quota ledger contention for %s/%s (%s), attempt %d",
                project_id,
                user_id,
                period,
                attempt,
            )
        raise ConcurrencyConflictException("quota_ledger", self.max_attempts)

    async def release(self, project_id: str, user_id: str, period_start: datetime) -> None:
        """Give back a slot taken by reserve() for an issuance that failed.

        Best effort: failures are logged, never raised.
        """
        period = self.period_key(period_start)
        try:
            for _ in range(self.max_attempts):
                entry = await self.ledger.get(project_id, user_id, period)
                if entry is None or entry.reserved <= 0:
                    return
                if await self.ledger.compare_and_set(
                    project_id, user_id, period, entry.reserved - 1, entry.version
                ):
                    return
        except Exception:
            logger.exception(
                "Failed to release quota slot for %s/%s (%s)", project_id, user_id, period
            )
            return
        logger.warning(
            "Gave up releasing quota slot for %s/%s (%s) after %d attempts",
            project_id,
            user_id,
            period,
            self.max_attempts,
        )
