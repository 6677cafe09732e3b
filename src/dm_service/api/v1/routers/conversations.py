from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from dm_service.api.deps import CurrentPrincipal, UoWDep
from dm_service.api.v1.schemas.common import ErrorResponse
from dm_service.api.v1.schemas.conversation import (
    ConversationResponse,
    ResolveConversationRequest,
    ResolveConversationResponse,
)
from dm_service.services import conversation_service

router = APIRouter(
    prefix="/api/v1/dm/conversations",
    tags=["conversations"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)


@router.post("/resolve", response_model=ResolveConversationResponse)
async def resolve_conversation(
    body: ResolveConversationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ResolveConversationResponse:
    resolution = await conversation_service.resolve_conversation_for_caller(
        body.party_a, body.party_b, principal, uow,
    )
    return ResolveConversationResponse(
        conversation_id=resolution.conversation.id,
        created=resolution.created,
    )


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(50, ge=1, le=200),
) -> list[ConversationResponse]:
    convs = await conversation_service.list_conversations(principal, limit, uow)
    return [ConversationResponse.model_validate(c) for c in convs]


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_conversation(conversation_id, principal, uow)
    return ConversationResponse.model_validate(conv)
