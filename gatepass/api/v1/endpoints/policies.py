"""Policy administration API: project and unit policies, unit usage reconciliation.

Every route requires a caller with a policy admin role in the project.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response

from gatepass.api.v1.dependencies import get_guest_pass_operations, require_policy_admin
from gatepass.application.dtos.guest_pass import ProjectPolicyUpdate, UnitPolicyUpdate
from gatepass.application.use_cases import GuestPassOperations
from gatepass.schemas.policy import (
    ProjectPolicyUpdateRequest,
    UnitPolicyUpdateRequest,
    UnitUsageResponse,
)

router = APIRouter()

ProjectId = Annotated[str, Path(min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_-]+$")]
Unit = Annotated[str, Path(min_length=1, max_length=128)]


@router.put("/{project_id}/policy", status_code=204)
async def update_project_policy(
    project_id: ProjectId,
    body: ProjectPolicyUpdateRequest,
    _admin_id: Annotated[str, Depends(require_policy_admin)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> Response:
    await ops.update_project_policy(
        project_id,
        ProjectPolicyUpdate(
            block_all_users=body.block_all_users,
            block_family_members=body.block_family_members,
            monthly_limit=body.monthly_limit,
            validity_duration_hours=body.validity_duration_hours,
        ),
    )
    return Response(status_code=204)


@router.put("/{project_id}/units/{unit}/policy", status_code=204)
async def update_unit_policy(
    project_id: ProjectId,
    unit: Unit,
    body: UnitPolicyUpdateRequest,
    _admin_id: Annotated[str, Depends(require_policy_admin)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> Response:
    """Block/unblock a unit or set/clear its monthly limit."""
    await ops.update_unit_policy(
        project_id,
        unit,
        UnitPolicyUpdate(
            blocked=body.blocked,
            blocked_reason=body.blocked_reason,
            monthly_limit=body.monthly_limit,
            clear_monthly_limit=body.clear_monthly_limit,
        ),
    )
    return Response(status_code=204)


@router.post("/{project_id}/units/{unit}/usage/reconcile", response_model=UnitUsageResponse)
async def reconcile_unit_usage(
    project_id: ProjectId,
    unit: Unit,
    _admin_id: Annotated[str, Depends(require_policy_admin)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> UnitUsageResponse:
    used = await ops.reconcile_unit_usage(project_id, unit)
    return UnitUsageResponse(unit=unit, used_this_month=used)
