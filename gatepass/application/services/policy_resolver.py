"""Policy resolution: project -> role -> unit -> deprecated per-user block.

Every policy read is fail-open. A missing or unreadable document is treated
as "not configured" and the built-in default for that scope applies.
"""

from __future__ import annotations

from gatepass.application.dtos.guest_pass import PolicyDecision
from gatepass.application.interfaces.repositories import (
    IPolicyProvider,
    IUserDirectory,
    PolicyUnavailableError,
)
from gatepass.core.constants import FAMILY_ROLE
from gatepass.domain.entities.policy import (
    DEFAULT_PROJECT_POLICY,
    NOT_BLOCKED,
    LegacyUserBlock,
    ProjectPolicy,
    UnitPolicy,
    UserAccount,
    resolve_monthly_limit,
)
from gatepass.domain.enums import EligibilityReason
from gatepass.domain.exceptions import (
    UserNotFoundException,
    UserNotInProjectException,
    ValidationException,
)
from gatepass.shared.telemetry.logging import get_logger
from gatepass.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)


def require_identifier(value: str | None, field: str) -> str:
    """Return value stripped, or raise ValidationException when blank."""
    if value is None or not str(value).strip():
        raise ValidationException(f"{field} is required", field=field)
    return str(value).strip()


class PolicyResolver:
    """Resolves whether a user may issue passes in a project and their limit."""

    def __init__(
        self,
        users: IUserDirectory,
        policies: IPolicyProvider,
        *,
        legacy_user_block_enabled: bool = True,
    ) -> None:
        self.users = users
        self.policies = policies
        self.legacy_user_block_enabled = legacy_user_block_enabled

    async def get_member(self, project_id: str, user_id: str) -> UserAccount:
        """Load the user and confirm they belong to project_id."""
        user = await self.users.get_user(user_id)
        if user is None:
            raise UserNotFoundException(user_id)
        if user.membership_for(project_id) is None:
            raise UserNotInProjectException(user_id, project_id)
        return user

    @traced("policy.resolve")
    async def resolve(self, project_id: str, user_id: str) -> PolicyDecision:
        """Walk the hierarchy; the first block found wins.

        Raises:
            ValidationException: blank project_id or user_id.
            UserNotFoundException: no such user.
            UserNotInProjectException: user has no membership in project_id.
        """
        project_id = require_identifier(project_id, "project_id")
        user_id = require_identifier(user_id, "user_id")

        user = await self.get_member(project_id, user_id)
        membership = user.membership_for(project_id)
        unit = membership.unit
        role = membership.role

        legacy = await self._legacy_block(project_id, user_id)
        project = await self.project_policy(project_id)
        unit_policy = await self._unit_policy(project_id, unit) if unit else None
        limit = resolve_monthly_limit(project, unit_policy)

        def decision(reason: EligibilityReason, blocked_reason: str | None = None) -> PolicyDecision:
            add_span_attributes(reason=reason.value)
            return PolicyDecision(
                allowed=reason is EligibilityReason.ELIGIBLE,
                reason=reason,
                monthly_limit=limit,
                user=user,
                unit=unit,
                role=role,
                blocked_reason=blocked_reason,
            )

        if legacy.blocked:
            return decision(EligibilityReason.BLOCKED, legacy.blocked_reason)
        if project.block_all_users:
            return decision(EligibilityReason.PROJECT_BLOCKED)
        if project.block_family_members and role == FAMILY_ROLE:
            return decision(EligibilityReason.FAMILY_MEMBERS_BLOCKED)
        if unit_policy is not None and unit_policy.blocked:
            return decision(EligibilityReason.UNIT_BLOCKED, unit_policy.blocked_reason)
        return decision(EligibilityReason.ELIGIBLE)

    async def project_policy(self, project_id: str) -> ProjectPolicy:
        """Project policy, or the defaults when missing or unreadable."""
        try:
            policy = await self.policies.get_project_policy(project_id)
        except PolicyUnavailableError as e:
            logger.warning(
                "Project policy unavailable for %s, applying defaults: %s",
                project_id,
                e,
            )
            return DEFAULT_PROJECT_POLICY
        return policy if policy is not None else DEFAULT_PROJECT_POLICY

    async def unit_policy(self, project_id: str, unit: str) -> UnitPolicy | None:
        return await self._unit_policy(project_id, unit)

    async def _unit_policy(self, project_id: str, unit: str) -> UnitPolicy | None:
        try:
            return await self.policies.get_unit_policy(project_id, unit)
        except PolicyUnavailableError as e:
            logger.warning(
                "Unit policy unavailable for %s/%s, ignoring override: %s",
                project_id,
                unit,
                e,
            )
            return None

    async def _legacy_block(self, project_id: str, user_id: str) -> LegacyUserBlock:
        if not self.legacy_user_block_enabled:
            return NOT_BLOCKED
        try:
            block = await self.policies.get_legacy_user_block(project_id, user_id)
        except PolicyUnavailableError as e:
            logger.warning(
                "User policy unavailable for %s/%s, treating as not blocked: %s",
                project_id,
                user_id,
                e,
            )
            return NOT_BLOCKED
        return block if block is not None else NOT_BLOCKED
