from __future__ import annotations

from fastapi import APIRouter

from dm_service.api.deps import CallPolicyDep, CallSignerDep, CurrentPrincipal, UoWDep
from dm_service.api.v1.schemas.call import CallTokenRequest, CallTokenResponse
from dm_service.api.v1.schemas.common import ErrorResponse
from dm_service.services import call_service

router = APIRouter(
    prefix="/api/v1/dm/calls",
    tags=["calls"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)


@router.post("/token", response_model=CallTokenResponse)
async def issue_call_token(
    body: CallTokenRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    signer: CallSignerDep,
    policy: CallPolicyDep,
) -> CallTokenResponse:
    issued = await call_service.issue_call_credential(
        body.conversation_id,
        principal,
        uow,
        signer,
        requested_room_name=body.room_name,
        requested_identity=body.identity,
        policy=policy,
    )
    return CallTokenResponse(
        token=issued.token,
        room_name=issued.room_name,
        identity=issued.identity,
        expires_at=issued.expires_at,
    )
