"""Guest pass issuance: re-validate, reserve quota, render, store, persist."""

from __future__ import annotations

from datetime import datetime, timedelta

from gatepass.application.dtos.guest_pass import IssueResult
from gatepass.application.interfaces.repositories import (
    IGuestPassRepository,
    IUnitUsageRepository,
)
from gatepass.application.interfaces.services import (
    IClock,
    ICredentialRenderer,
    IObjectStore,
)
from gatepass.application.services.policy_resolver import (
    PolicyResolver,
    require_identifier,
)
from gatepass.application.services.quota_counter import (
    QuotaCounter,
    limit_reached_message,
)
from gatepass.domain.entities.guest_pass import GuestPass
from gatepass.domain.enums import EligibilityReason, QuotaScope
from gatepass.domain.exceptions import EligibilityDeniedException
from gatepass.shared.telemetry.logging import get_logger
from gatepass.shared.telemetry.tracing import add_span_attributes, traced
from gatepass.shared.utils.generators import (
    generate_pass_id,
    generate_verification_token,
)

logger = get_logger(__name__)


class PassIssuer:
    """Creates guest passes for eligible users.

    Eligibility is re-checked at issuance time; the quota slot is then
    reserved on the ledger before anything is written. If a later step
    fails the slot is released and the error propagates.
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        quota: QuotaCounter,
        passes: IGuestPassRepository,
        unit_usage: IUnitUsageRepository,
        renderer: ICredentialRenderer,
        object_store: IObjectStore,
        clock: IClock,
        *,
        storage_prefix: str = "guestPasses",
    ) -> None:
        self.resolver = resolver
        self.quota = quota
        self.passes = passes
        self.unit_usage = unit_usage
        self.renderer = renderer
        self.object_store = object_store
        self.clock = clock
        self.storage_prefix = storage_prefix.strip("/")

    @traced("pass.issue")
    async def issue(
        self,
        project_id: str,
        user_id: str,
        user_name: str | None,
        guest_name: str,
        purpose: str,
        phone_number: str | None = None,
    ) -> IssueResult:
        """Issue one pass. A falsy user_name falls back to the stored user name.

        Raises:
            ValidationException: blank identifiers, guest name or purpose.
            UserNotFoundException / UserNotInProjectException: membership.
            EligibilityDeniedException: blocked or over the monthly limit.
            ConcurrencyConflictException: quota ledger contention.
        """
        guest_name = require_identifier(guest_name, "guest_name")
        purpose = require_identifier(purpose, "purpose")

        decision = await self.resolver.resolve(project_id, user_id)
        project_id, user_id = project_id.strip(), user_id.strip()
        if not decision.allowed:
            raise EligibilityDeniedException(
                decision.reason.value,
                decision.message,
                monthly_limit=decision.monthly_limit,
            )

        used = await self.quota.used_this_month(project_id, user_id)
        if used >= decision.monthly_limit:
            raise EligibilityDeniedException(
                EligibilityReason.LIMIT_REACHED.value,
                limit_reached_message(decision.monthly_limit),
                monthly_limit=decision.monthly_limit,
                used_this_month=used,
            )

        period_start = self.quota.current_period_start()
        await self.quota.reserve(project_id, user_id, decision.monthly_limit, period_start)
        name = user_name or decision.user.name or ""
        try:
            guest_pass = await self._create_pass(
                project_id=project_id,
                user_id=user_id,
                user_name=name,
                unit=decision.unit,
                guest_name=guest_name,
                purpose=purpose,
                phone_number=phone_number,
            )
        except Exception:
            await self.quota.release(project_id, user_id, period_start)
            raise

        add_span_attributes(pass_id=guest_pass.id)
        logger.info(
            "Issued guest pass %s for user %s in project %s",
            guest_pass.id,
            user_id,
            project_id,
        )
        if decision.unit:
            await self._update_unit_usage(
                project_id, decision.unit, user_id, name, period_start
            )
        return IssueResult(
            pass_id=guest_pass.id,
            credential_locator=guest_pass.credential_locator or "",
            guest_pass=guest_pass,
        )

    async def _create_pass(
        self,
        *,
        project_id: str,
        user_id: str,
        user_name: str,
        unit: str,
        guest_name: str,
        purpose: str,
        phone_number: str | None,
    ) -> GuestPass:
        policy = await self.resolver.project_policy(project_id)
        now = self.clock.now()
        guest_pass = GuestPass(
            id=generate_pass_id(),
            project_id=project_id,
            user_id=user_id,
            user_name=user_name,
            unit=unit,
            guest_name=guest_name,
            purpose=purpose,
            phone_number=phone_number or None,
            valid_from=now,
            valid_until=now + timedelta(hours=policy.effective_validity_hours),
            created_at=now,
            updated_at=now,
            verification_token=generate_verification_token(),
        )

        rendered = self.renderer.render(guest_pass.credential_payload())
        storage_ref = (
            f"{self.storage_prefix}/{project_id}/{guest_pass.id}.{rendered.extension}"
        )
        guest_pass.credential_locator = await self.object_store.put(
            storage_ref,
            rendered.content,
            rendered.content_type,
            metadata={"project_id": project_id, "pass_id": guest_pass.id},
        )
        try:
            await self.passes.create(guest_pass)
        except Exception:
            await self._discard_artifact(storage_ref)
            raise
        return guest_pass

    async def _discard_artifact(self, storage_ref: str) -> None:
        try:
            await self.object_store.delete(storage_ref)
        except Exception:
            logger.warning("Could not remove orphaned credential %s", storage_ref, exc_info=True)

    async def _update_unit_usage(
        self,
        project_id: str,
        unit: str,
        user_id: str,
        user_name: str,
        period_start: datetime,
    ) -> None:
        """Bump the informational unit aggregate; never fails the issuance."""
        try:
            period = self.quota.period_key(period_start)
            current = await self.resolver.unit_policy(project_id, unit)
            now = self.clock.now()
            if current is not None and current.usage_period == period:
                await self.unit_usage.increment_usage(
                    project_id, unit, user_id, user_name, now
                )
                return
            # First issuance of the period (or never aggregated): recount.
            used = await self.quota.count_active(
                project_id, QuotaScope.UNIT, unit, period_start
            )
            await self.unit_usage.set_usage(
                project_id,
                unit,
                used,
                period,
                now,
                created_by=user_id,
                created_by_name=user_name,
            )
        except Exception:
            logger.exception(
                "Failed to update unit usage for %s/%s after issuance", project_id, unit
            )
