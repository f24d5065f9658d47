"""Guest pass operation surface: eligibility, issuance, delivery, redemption, administration."""

from __future__ import annotations

from gatepass.application.dtos.guest_pass import (
    EligibilityResult,
    IssueResult,
    ProjectPolicyUpdate,
    RedeemResult,
    UnitPolicyUpdate,
    UserStatus,
)
from gatepass.application.interfaces.repositories import (
    IGuestPassRepository,
    IPolicyWriter,
    IUnitUsageRepository,
)
from gatepass.application.interfaces.services import IClock
from gatepass.application.services.pass_issuer import PassIssuer
from gatepass.application.services.pass_verifier import PassVerifier
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
from gatepass.core.constants import DEFAULT_POLICY_ADMIN_ROLES
from gatepass.domain.exceptions import (
    PassNotFoundException,
    PolicyAdminRequiredException,
    ValidationException,
)
from gatepass.shared.telemetry.logging import get_logger
from gatepass.shared.telemetry.tracing import traced

logger = get_logger(__name__)


def _non_negative(value: int | None, field: str) -> None:
    if value is not None and value < 0:
        raise ValidationException(f"{field} must not be negative", field=field)


class GuestPassOperations:
    """Entry point for every guest pass workflow.

    Composes the resolver, quota counter, issuer and verifier; the API layer
    talks only to this class.
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        quota: QuotaCounter,
        issuer: PassIssuer,
        verifier: PassVerifier,
        passes: IGuestPassRepository,
        policy_writer: IPolicyWriter,
        unit_usage: IUnitUsageRepository,
        clock: IClock,
        *,
        admin_roles: tuple[str, ...] = DEFAULT_POLICY_ADMIN_ROLES,
    ) -> None:
        self.resolver = resolver
        self.quota = quota
        self.issuer = issuer
        self.verifier = verifier
        self.passes = passes
        self.policy_writer = policy_writer
        self.unit_usage = unit_usage
        self.clock = clock
        self.admin_roles = frozenset(r.strip().lower() for r in admin_roles if r.strip())

    @traced("guest_pass.check_eligibility")
    async def check_eligibility(self, project_id: str, user_id: str) -> EligibilityResult:
        """Whether user_id may issue a pass now, with quota figures when not blocked."""
        decision = await self.resolver.resolve(project_id, user_id)
        if not decision.allowed:
            return EligibilityResult(
                allowed=False,
                reason_code=decision.reason.value,
                message=decision.message,
                monthly_limit=decision.monthly_limit,
                unit=decision.unit,
            )

        used = await self.quota.used_this_month(project_id.strip(), user_id.strip())
        limit = decision.monthly_limit
        if used >= limit:
            return EligibilityResult(
                allowed=False,
                reason_code=EligibilityReason.LIMIT_REACHED.value,
                message=limit_reached_message(limit),
                monthly_limit=limit,
                used_this_month=used,
                remaining_quota=0,
                unit=decision.unit,
            )
        return EligibilityResult(
            allowed=True,
            reason_code=EligibilityReason.ELIGIBLE.value,
            message=decision.message,
            monthly_limit=limit,
            used_this_month=used,
            remaining_quota=limit - used,
            unit=decision.unit,
        )

    async def issue_pass(
        self,
        project_id: str,
        user_id: str,
        user_name: str | None,
        guest_name: str,
        purpose: str,
        phone_number: str | None = None,
    ) -> IssueResult:
        """Issue a pass; user_name may be None to use the stored display name."""
        return await self.issuer.issue(
            project_id,
            user_id,
            user_name,
            guest_name,
            purpose,
            phone_number=phone_number,
        )

    async def mark_sent(self, project_id: str, pass_id: str) -> bool:
        """Record that the credential was delivered. Does not gate redemption."""
        project_id = require_identifier(project_id, "project_id")
        pass_id = require_identifier(pass_id, "pass_id")
        if not await self.passes.mark_sent(project_id, pass_id, self.clock.now()):
            raise PassNotFoundException(project_id, pass_id)
        logger.info("Guest pass %s marked as sent", pass_id)
        return True

    async def redeem_pass(
        self, project_id: str, pass_id: str, verification_token: str
    ) -> RedeemResult:
        return await self.verifier.redeem(project_id, pass_id, verification_token)

    async def get_pass(self, project_id: str, pass_id: str) -> GuestPass | None:
        """Pass by public ID; soft-deleted passes are hidden."""
        project_id = require_identifier(project_id, "project_id")
        pass_id = require_identifier(pass_id, "pass_id")
        guest_pass = await self.passes.find_by_pass_id(project_id, pass_id)
        if guest_pass is None or guest_pass.deleted:
            return None
        return guest_pass

    async def list_passes(
        self, project_id: str, user_id: str, unit: str | None = None
    ) -> list[GuestPass]:
        """Non-deleted passes for the unit (or the user when no unit), newest first."""
        project_id = require_identifier(project_id, "project_id")
        user_id = require_identifier(user_id, "user_id")
        await self.resolver.get_member(project_id, user_id)
        if unit:
            passes = await self.passes.list_for_scope(project_id, QuotaScope.UNIT, unit)
        else:
            passes = await self.passes.list_for_scope(project_id, QuotaScope.USER, user_id)
        visible = [p for p in passes if not p.deleted]
        visible.sort(key=lambda p: p.created_at, reverse=True)
        return visible

    async def get_user_status(self, project_id: str, user_id: str) -> UserStatus:
        decision = await self.resolver.resolve(project_id, user_id)
        used = await self.quota.used_this_month(project_id.strip(), user_id.strip())
        user = decision.user
        return UserStatus(
            user_id=user.id,
            name=user.name,
            email=user.email,
            unit=decision.unit,
            blocked=not decision.allowed,
            block_reason=None if decision.allowed else decision.reason.value,
            monthly_limit=decision.monthly_limit,
            used_this_month=used,
            remaining_quota=max(0, decision.monthly_limit - used),
        )

    async def require_policy_admin(self, project_id: str, user_id: str) -> None:
        """Raise unless user_id holds an admin role in project_id."""
        project_id = require_identifier(project_id, "project_id")
        user_id = require_identifier(user_id, "user_id")
        user = await self.resolver.get_member(project_id, user_id)
        membership = user.membership_for(project_id)
        if membership.role.strip().lower() not in self.admin_roles:
            logger.warning(
                "User %s (role %r) denied policy change in %s",
                user_id,
                membership.role,
                project_id,
            )
            raise PolicyAdminRequiredException(user_id, project_id)

    async def update_project_policy(
        self, project_id: str, changes: ProjectPolicyUpdate
    ) -> None:
        project_id = require_identifier(project_id, "project_id")
        _non_negative(changes.monthly_limit, "monthly_limit")
        if changes.validity_duration_hours is not None and changes.validity_duration_hours < 1:
            raise ValidationException(
                "validity_duration_hours must be at least 1",
                field="validity_duration_hours",
            )
        await self.policy_writer.update_project_policy(project_id, changes, self.clock.now())
        logger.info("Project policy updated for %s", project_id)

    async def update_unit_policy(
        self, project_id: str, unit: str, changes: UnitPolicyUpdate
    ) -> None:
        project_id = require_identifier(project_id, "project_id")
        unit = require_identifier(unit, "unit")
        _non_negative(changes.monthly_limit, "monthly_limit")
        if changes.clear_monthly_limit and changes.monthly_limit is not None:
            raise ValidationException(
                "monthly_limit cannot be set and cleared at once", field="monthly_limit"
            )
        await self.policy_writer.update_unit_policy(
            project_id, unit, changes, self.clock.now()
        )
        logger.info(
            "Unit policy updated for %s/%s (blocked=%s)", project_id, unit, changes.blocked
        )

    @traced("guest_pass.reconcile_unit_usage")
    async def reconcile_unit_usage(self, project_id: str, unit: str) -> int:
        """Recount the unit's passes this period and overwrite the aggregate."""
        project_id = require_identifier(project_id, "project_id")
        unit = require_identifier(unit, "unit")
        period_start = self.quota.current_period_start()
        used = await self.quota.count_active(project_id, QuotaScope.UNIT, unit, period_start)
        await self.unit_usage.set_usage(
            project_id,
            unit,
            used,
            self.quota.period_key(period_start),
            self.clock.now(),
        )
        return used
