"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from gatepass.application.dtos.guest_pass import (
        LedgerEntry,
        PeriodUsage,
        ProjectPolicyUpdate,
        UnitPolicyUpdate,
    )
    from gatepass.domain.entities.guest_pass import GuestPass
    from gatepass.domain.entities.policy import (
        LegacyUserBlock,
        ProjectPolicy,
        UnitPolicy,
        UserAccount,
    )
    from gatepass.domain.enums import QuotaScope


class PolicyUnavailableError(Exception):
    """A policy document could not be read (store error or malformed data).

    The resolver treats this as "no policy configured" and continues.
    """


# Policy provider interface
class IPolicyProvider(Protocol):
    """Read access to the project -> unit -> user policy documents.

    Each getter returns None when the document does not exist and raises
    PolicyUnavailableError when it cannot be read.
    """

    async def get_project_policy(self, project_id: str) -> ProjectPolicy | None:
        ...

    async def get_unit_policy(self, project_id: str, unit: str) -> UnitPolicy | None:
        ...

    async def get_legacy_user_block(
        self, project_id: str, user_id: str
    ) -> LegacyUserBlock | None:
        ...


class IPolicyWriter(Protocol):
    """Administrative writes to policy documents (merge semantics)."""

    async def update_project_policy(
        self, project_id: str, changes: ProjectPolicyUpdate, updated_at: datetime
    ) -> None:
        ...

    async def update_unit_policy(
        self,
        project_id: str,
        unit: str,
        changes: UnitPolicyUpdate,
        updated_at: datetime,
    ) -> None:
        """Merge changes; setting blocked also stamps or clears blockedAt/blockedReason."""


class IUnitUsageRepository(Protocol):
    """Informational per-unit usage aggregate stored on the unit policy document."""

    async def increment_usage(
        self,
        project_id: str,
        unit: str,
        created_by: str,
        created_by_name: str,
        at: datetime,
    ) -> None:
        """Atomically add one to usedThisMonth and record the last creator."""

    async def set_usage(
        self,
        project_id: str,
        unit: str,
        used: int,
        period: str,
        at: datetime,
        created_by: str | None = None,
        created_by_name: str | None = None,
    ) -> None:
        """Overwrite usedThisMonth with a recounted value for period."""


# User directory interface
class IUserDirectory(Protocol):
    """Protocol for user lookups (identity + project memberships)."""

    async def get_user(self, user_id: str) -> UserAccount | None:
        ...


# Guest pass repository interface
class IGuestPassRepository(Protocol):
    """Protocol for guest pass persistence within a project."""

    async def create(self, guest_pass: GuestPass) -> None:
        """Create-only insert keyed by pass ID."""

    async def find_by_pass_id(self, project_id: str, pass_id: str) -> GuestPass | None:
        """Return the pass whose ``id`` field equals pass_id, with its version set."""

    async def count_since(
        self,
        project_id: str,
        scope: QuotaScope,
        scope_value: str,
        since: datetime,
    ) -> PeriodUsage:
        """Count passes for scope created at or after since, split by deleted flag."""

    async def list_for_scope(
        self, project_id: str, scope: QuotaScope, scope_value: str
    ) -> list[GuestPass]:
        ...

    async def mark_sent(self, project_id: str, pass_id: str, sent_at: datetime) -> bool:
        """Set sentStatus/sentAt on the pass whose id field is pass_id.

        Returns False when the pass does not exist.
        """

    async def mark_used(
        self,
        project_id: str,
        pass_id: str,
        used_at: datetime,
        expected_version: str | None,
        *,
        document_id: str | None = None,
    ) -> bool:
        """Set used/usedAt only if the pass is unchanged since expected_version.

        document_id is the stored key from the snapshot read; when omitted the
        pass is located by its id field. Returns False when the document
        changed in between (lost race) or no longer exists.
        """


# Quota ledger interface
class IQuotaLedger(Protocol):
    """Per-user per-period reservation counter used to serialize issuance."""

    async def get(self, project_id: str, user_id: str, period: str) -> LedgerEntry | None:
        ...

    async def create(
        self, project_id: str, user_id: str, period: str, reserved: int
    ) -> bool:
        """Create the entry. Returns False if another writer created it first."""

    async def compare_and_set(
        self,
        project_id: str,
        user_id: str,
        period: str,
        reserved: int,
        expected_version: str | None,
    ) -> bool:
        """Write reserved only if the entry is still at expected_version."""
