from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response, status

from dm_service.api.deps import CallPolicyDep, CurrentPrincipal, UoWDep
from dm_service.api.v1.schemas.call import FinishCallRequest, StartCallRequest, VideoCallResponse
from dm_service.api.v1.schemas.common import ErrorResponse
from dm_service.services import call_invitation_service

router = APIRouter(
    prefix="/api/v1/dm/calls",
    tags=["calls"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)


@router.post("", response_model=VideoCallResponse, status_code=status.HTTP_201_CREATED)
async def start_call(
    body: StartCallRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    policy: CallPolicyDep,
    response: Response,
) -> VideoCallResponse:
    invitation = await call_invitation_service.start_call(
        body.conversation_id, principal, uow, room_prefix=policy.room_prefix,
    )
    if not invitation.created:
        response.status_code = status.HTTP_200_OK
    return VideoCallResponse.model_validate(invitation.call)


@router.get("/active", response_model=list[VideoCallResponse])
async def list_active_calls(principal: CurrentPrincipal, uow: UoWDep) -> list[VideoCallResponse]:
    calls = await call_invitation_service.list_active_calls(principal, uow)
    return [VideoCallResponse.model_validate(c) for c in calls]


@router.get("/{call_id}", response_model=VideoCallResponse)
async def get_call(call_id: UUID, principal: CurrentPrincipal, uow: UoWDep) -> VideoCallResponse:
    call = await call_invitation_service.get_call(call_id, principal, uow)
    return VideoCallResponse.model_validate(call)


@router.post("/{call_id}/accept", response_model=VideoCallResponse)
async def accept_call(call_id: UUID, principal: CurrentPrincipal, uow: UoWDep) -> VideoCallResponse:
    call = await call_invitation_service.accept_call(call_id, principal, uow)
    return VideoCallResponse.model_validate(call)


@router.post("/{call_id}/reject", response_model=VideoCallResponse)
async def reject_call(
    call_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    body: FinishCallRequest | None = None,
) -> VideoCallResponse:
    reason = body.reason if body else None
    call = await call_invitation_service.reject_call(call_id, principal, uow, reason=reason)
    return VideoCallResponse.model_validate(call)


@router.post("/{call_id}/end", response_model=VideoCallResponse)
async def end_call(
    call_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    body: FinishCallRequest | None = None,
) -> VideoCallResponse:
    reason = body.reason if body else None
    call = await call_invitation_service.end_call(call_id, principal, uow, reason=reason)
    return VideoCallResponse.model_validate(call)
