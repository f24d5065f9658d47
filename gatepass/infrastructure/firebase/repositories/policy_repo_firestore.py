"""Firestore-backed policy documents: project, unit (with usage aggregate) and legacy user block.

Implements IPolicyProvider, IPolicyWriter and IUnitUsageRepository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from gatepass.application.dtos.guest_pass import ProjectPolicyUpdate, UnitPolicyUpdate
from gatepass.application.interfaces.repositories import PolicyUnavailableError
from gatepass.domain.entities.policy import LegacyUserBlock, ProjectPolicy, UnitPolicy
from gatepass.infrastructure.exceptions import StoreUnavailableError
from gatepass.infrastructure.firebase._rest_client import (
    DocumentReference,
    FirestoreRESTClient,
)
from gatepass.infrastructure.firebase.collections import (
    COLLECTION_PROJECTS,
    SUBCOLLECTION_UNIT_POLICIES,
    SUBCOLLECTION_USER_POLICIES,
    safe_doc_id,
)
from gatepass.shared.utils.datetime import coerce_datetime


def _opt_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a number")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key} must be a whole number")
    return int(value)


def _flag(data: dict[str, Any], key: str) -> bool:
    # Only a literal true blocks; anything else is "not set".
    return data.get(key) is True


class FirestorePolicyRepository:
    """Policy documents under projects/{projectId}."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._projects = client.collection(COLLECTION_PROJECTS)

    def _project_doc(self, project_id: str) -> DocumentReference:
        return self._projects.document(safe_doc_id(project_id))

    def _unit_doc(self, project_id: str, unit: str) -> DocumentReference:
        return (
            self._project_doc(project_id)
            .collection(SUBCOLLECTION_UNIT_POLICIES)
            .document(safe_doc_id(unit))
        )

    def _user_doc(self, project_id: str, user_id: str) -> DocumentReference:
        return (
            self._project_doc(project_id)
            .collection(SUBCOLLECTION_USER_POLICIES)
            .document(safe_doc_id(user_id))
        )

    async def _read(self, ref: DocumentReference) -> dict[str, Any] | None:
        try:
            snapshot = await ref.get()
        except (StoreUnavailableError, httpx.HTTPError) as e:
            raise PolicyUnavailableError(f"{ref.id}: {e}") from e
        return snapshot.to_dict() if snapshot is not None else None

    async def get_project_policy(self, project_id: str) -> ProjectPolicy | None:
        data = await self._read(self._project_doc(project_id))
        if data is None:
            return None
        try:
            return ProjectPolicy(
                block_all_users=_flag(data, "blockAllUsers"),
                block_family_members=_flag(data, "blockFamilyMembers"),
                monthly_limit=_opt_int(data, "monthlyLimit"),
                validity_duration_hours=_opt_int(data, "validityDurationHours"),
            )
        except (TypeError, ValueError) as e:
            raise PolicyUnavailableError(f"malformed project policy {project_id}: {e}") from e

    async def get_unit_policy(self, project_id: str, unit: str) -> UnitPolicy | None:
        data = await self._read(self._unit_doc(project_id, unit))
        if data is None:
            return None
        try:
            return UnitPolicy(
                unit=unit,
                blocked=_flag(data, "blocked"),
                blocked_reason=data.get("blockedReason"),
                blocked_at=coerce_datetime(data.get("blockedAt")),
                monthly_limit=_opt_int(data, "monthlyLimit"),
                used_this_month=_opt_int(data, "usedThisMonth") or 0,
                usage_period=data.get("usagePeriod"),
                last_pass_created_by=data.get("lastPassCreatedBy"),
                last_pass_created_by_name=data.get("lastPassCreatedByName"),
                updated_at=coerce_datetime(data.get("updatedAt")),
            )
        except (TypeError, ValueError) as e:
            raise PolicyUnavailableError(
                f"malformed unit policy {project_id}/{unit}: {e}"
            ) from e

    async def get_legacy_user_block(
        self, project_id: str, user_id: str
    ) -> LegacyUserBlock | None:
        data = await self._read(self._user_doc(project_id, user_id))
        if data is None:
            return None
        try:
            return LegacyUserBlock(
                blocked=_flag(data, "blocked"),
                blocked_reason=data.get("blockedReason"),
                blocked_at=coerce_datetime(data.get("blockedAt")),
            )
        except (TypeError, ValueError) as e:
            raise PolicyUnavailableError(
                f"malformed user policy {project_id}/{user_id}: {e}"
            ) from e

    async def update_project_policy(
        self, project_id: str, changes: ProjectPolicyUpdate, updated_at: datetime
    ) -> None:
        fields: dict[str, Any] = {"updatedAt": updated_at}
        if changes.block_all_users is not None:
            fields["blockAllUsers"] = changes.block_all_users
        if changes.block_family_members is not None:
            fields["blockFamilyMembers"] = changes.block_family_members
        if changes.monthly_limit is not None:
            fields["monthlyLimit"] = changes.monthly_limit
        if changes.validity_duration_hours is not None:
            fields["validityDurationHours"] = changes.validity_duration_hours
        await self._project_doc(project_id).merge(fields)

    async def update_unit_policy(
        self,
        project_id: str,
        unit: str,
        changes: UnitPolicyUpdate,
        updated_at: datetime,
    ) -> None:
        fields: dict[str, Any] = {"unit": unit, "updatedAt": updated_at}
        if changes.blocked is True:
            fields.update(
                blocked=True, blockedReason=changes.blocked_reason, blockedAt=updated_at
            )
        elif changes.blocked is False:
            fields.update(blocked=False, blockedReason=None, blockedAt=None)
        if changes.clear_monthly_limit:
            fields["monthlyLimit"] = None
        elif changes.monthly_limit is not None:
            fields["monthlyLimit"] = changes.monthly_limit
        await self._unit_doc(project_id, unit).merge(fields)

    async def increment_usage(
        self,
        project_id: str,
        unit: str,
        created_by: str,
        created_by_name: str,
        at: datetime,
    ) -> None:
        await self._client.increment(
            self._unit_doc(project_id, unit),
            {"usedThisMonth": 1},
            fields={
                "lastPassCreatedBy": created_by,
                "lastPassCreatedByName": created_by_name,
                "updatedAt": at,
            },
        )

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
        fields: dict[str, Any] = {
            "unit": unit,
            "usedThisMonth": used,
            "usagePeriod": period,
            "updatedAt": at,
        }
        if created_by is not None:
            fields["lastPassCreatedBy"] = created_by
            fields["lastPassCreatedByName"] = created_by_name or ""
        await self._unit_doc(project_id, unit).merge(fields)
