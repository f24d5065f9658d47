"""Guest pass API: thin routes delegating to GuestPassOperations."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse

from gatepass.api.v1.dependencies import get_guest_pass_operations, get_user_id
from gatepass.application.use_cases import GuestPassOperations
from gatepass.core.limiter import limit_issue, limit_redeem
from gatepass.domain.enums import RedeemReason
from gatepass.domain.exceptions import PassNotFoundException
from gatepass.schemas.guest_pass import (
    EligibilityResponse,
    GuestPassCreateRequest,
    GuestPassCreateResponse,
    GuestPassListResponse,
    GuestPassResponse,
    MarkSentResponse,
    RedeemRequest,
    RedeemResponse,
    UserStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ProjectId = Annotated[str, Path(min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_-]+$")]
PassId = Annotated[str, Path(min_length=1, max_length=64)]

_REDEEM_STATUS: dict[RedeemReason, int] = {
    RedeemReason.REDEEMED: 200,
    RedeemReason.NOT_FOUND: 404,
    RedeemReason.INVALID_TOKEN: 403,
    RedeemReason.ALREADY_USED: 409,
    RedeemReason.EXPIRED: 410,
}


@router.get("/{project_id}/eligibility", response_model=EligibilityResponse)
async def check_eligibility(
    project_id: ProjectId,
    user_id: Annotated[str, Depends(get_user_id)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> EligibilityResponse:
    """Whether the caller may issue a pass now; blocked outcomes are 200 with allowed=false."""
    result = await ops.check_eligibility(project_id, user_id)
    return EligibilityResponse.from_result(result)


@router.get("/{project_id}/status", response_model=UserStatusResponse)
async def get_user_status(
    project_id: ProjectId,
    user_id: Annotated[str, Depends(get_user_id)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> UserStatusResponse:
    status = await ops.get_user_status(project_id, user_id)
    return UserStatusResponse.from_status(status)


@router.post(
    "/{project_id}/guest-passes",
    response_model=GuestPassCreateResponse,
    status_code=201,
)
@limit_issue
async def issue_guest_pass(
    request: Request,
    project_id: ProjectId,
    body: GuestPassCreateRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> GuestPassCreateResponse:
    """Issue a pass for the caller. 403 with the denial reason when not eligible."""
    result = await ops.issue_pass(
        project_id,
        user_id,
        body.user_name,
        body.guest_name,
        body.purpose,
        phone_number=body.phone_number,
    )
    return GuestPassCreateResponse(
        pass_id=result.pass_id,
        credential_locator=result.credential_locator,
        guest_pass=GuestPassResponse.from_entity(result.guest_pass),
    )


@router.get("/{project_id}/guest-passes", response_model=GuestPassListResponse)
async def list_guest_passes(
    project_id: ProjectId,
    user_id: Annotated[str, Depends(get_user_id)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
    unit: str | None = None,
) -> GuestPassListResponse:
    """Passes for the given unit, or the caller's own when no unit is given."""
    passes = await ops.list_passes(project_id, user_id, unit=unit)
    return GuestPassListResponse(
        items=[GuestPassResponse.from_entity(p) for p in passes],
        total=len(passes),
    )


@router.get("/{project_id}/guest-passes/{pass_id}", response_model=GuestPassResponse)
async def get_guest_pass(
    project_id: ProjectId,
    pass_id: PassId,
    _user_id: Annotated[str, Depends(get_user_id)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> GuestPassResponse:
    guest_pass = await ops.get_pass(project_id, pass_id)
    if guest_pass is None:
        raise PassNotFoundException(project_id, pass_id)
    return GuestPassResponse.from_entity(guest_pass)


@router.post("/{project_id}/guest-passes/{pass_id}/sent", response_model=MarkSentResponse)
async def mark_guest_pass_sent(
    project_id: ProjectId,
    pass_id: PassId,
    _user_id: Annotated[str, Depends(get_user_id)],
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> MarkSentResponse:
    await ops.mark_sent(project_id, pass_id)
    return MarkSentResponse(pass_id=pass_id)


@router.post(
    "/{project_id}/guest-passes/{pass_id}/redeem",
    response_model=RedeemResponse,
    responses={
        403: {"model": RedeemResponse, "description": "Invalid verification token"},
        404: {"model": RedeemResponse, "description": "Pass not found"},
        409: {"model": RedeemResponse, "description": "Pass already used"},
        410: {"model": RedeemResponse, "description": "Pass expired"},
    },
)
@limit_redeem
async def redeem_guest_pass(
    request: Request,
    project_id: ProjectId,
    pass_id: PassId,
    body: RedeemRequest,
    ops: Annotated[GuestPassOperations, Depends(get_guest_pass_operations)],
) -> JSONResponse:
    """Scan-side redemption. The token is the credential; no user header is required."""
    result = await ops.redeem_pass(project_id, pass_id, body.verification_token)
    return JSONResponse(
        status_code=_REDEEM_STATUS[result.reason],
        content=RedeemResponse.from_result(result).model_dump(mode="json"),
    )
