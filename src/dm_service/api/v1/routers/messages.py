from __future__ import annotations

from fastapi import APIRouter, Response, status

from dm_service.api.deps import CurrentPrincipal, UoWDep
from dm_service.api.v1.schemas.common import ErrorResponse
from dm_service.api.v1.schemas.message import MessageResponse, SendMessageRequest
from dm_service.services import message_service

router = APIRouter(
    prefix="/api/v1/dm/messages",
    tags=["messages"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    response: Response,
) -> MessageResponse:
    msg, created = await message_service.send_message(
        body.sender_party_id,
        body.body,
        body.client_msg_id,
        principal,
        uow,
        conversation_id=body.conversation_id,
        recipient_party_id=body.recipient_party_id,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return MessageResponse.model_validate(msg)
