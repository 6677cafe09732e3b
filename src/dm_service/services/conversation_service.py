from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from dm_service.application.dto.conversation import ConversationResolution
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import (
    InvalidInputError,
    ResourceConflictError,
    ResourceInactiveError,
    UnauthorizedError,
)
from dm_service.application.policies.permissions import assert_active_participant
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.conversation import Conversation
from dm_service.domain.entities.participant import Participant
from dm_service.domain.pairing import InvalidPairError, PartyPair, canonical_pair
from dm_service.domain.value_objects.enums import ConversationType

logger = logging.getLogger(__name__)


async def resolve_conversation(
    party_a: str,
    party_b: str,
    principal: Principal,
    uow: UnitOfWork,
) -> ConversationResolution:
    """Return the single direct conversation between two parties, creating it once.

    Concurrent callers racing on the same pair all get the same row: the
    store's ``(party_low, party_high)`` unique constraint picks the winner
    and losers re-read it.
    """
    try:
        pair = canonical_pair(party_a, party_b)
    except InvalidPairError as exc:
        raise InvalidInputError(str(exc)) from exc

    existing = await uow.conversations.get_by_pair(pair.low, pair.high)
    if existing is not None:
        return ConversationResolution(existing, created=False)

    for party_id in pair:
        if await uow.parties.get_by_id(party_id) is None:
            raise InvalidInputError("Unknown party")

    created_by = await _creator_party(pair, principal, uow)
    now = datetime.now(timezone.utc)
    candidate = Conversation(
        id=uuid.uuid4(),
        party_low=pair.low,
        party_high=pair.high,
        created_by=created_by,
        type=ConversationType.DIRECT,
        last_message_at=None,
        created_at=now,
        updated_at=now,
    )

    result = await uow.conversations_w.insert_unique(candidate)
    if result.conflict:
        winner = await uow.conversations.get_by_pair(pair.low, pair.high)
        if winner is None:
            raise ResourceConflictError(
                f"Conversation for pair ({pair.low}, {pair.high}) conflicted but is missing"
            )
        logger.info("Lost creation race for pair (%s, %s); using %s", pair.low, pair.high, winner.id)
        return ConversationResolution(winner, created=False)

    conversation = result.conversation
    assert conversation is not None
    await _bootstrap_participants(conversation, now, uow)

    await uow.outbox.add(
        "dm.conversation_created",
        {
            "conversation_id": str(conversation.id),
            "party_low": conversation.party_low,
            "party_high": conversation.party_high,
            "created_by": conversation.created_by,
        },
    )
    await uow.commit()
    logger.info("Created conversation %s for pair (%s, %s)", conversation.id, pair.low, pair.high)
    return ConversationResolution(conversation, created=True)


async def resolve_conversation_for_caller(
    party_a: str,
    party_b: str,
    principal: Principal,
    uow: UnitOfWork,
) -> ConversationResolution:
    """Resolve on behalf of a caller who must own an active one of the two parties."""
    owned = await uow.parties.find_owned(principal.user_id, [party_a, party_b])
    if not owned:
        raise UnauthorizedError("Caller owns neither party")
    if not any(p.is_active for p in owned):
        raise ResourceInactiveError("Universe is not active")
    return await resolve_conversation(party_a, party_b, principal, uow)


async def _creator_party(pair: PartyPair, principal: Principal, uow: UnitOfWork) -> str:
    # created_by is metadata: a failed ownership lookup must not block creation.
    try:
        async with uow.savepoint():
            owned = await uow.parties.find_owned(principal.user_id, [pair.low, pair.high])
    except Exception:
        logger.warning(
            "Ownership lookup failed for user %s; defaulting created_by to %s",
            principal.user_id,
            pair.low,
            exc_info=True,
        )
        return pair.low
    owned_ids = {p.id for p in owned}
    for party_id in pair:
        if party_id in owned_ids:
            return party_id
    return pair.low


async def _bootstrap_participants(
    conversation: Conversation,
    joined_at: datetime,
    uow: UnitOfWork,
) -> None:
    participants = [
        Participant(conversation_id=conversation.id, party_id=party_id, joined_at=joined_at)
        for party_id in conversation.party_ids
    ]
    try:
        async with uow.savepoint():
            await uow.participants_w.add_ignore_duplicates(participants)
    except Exception:
        logger.warning(
            "Failed to create participants for conversation %s",
            conversation.id,
            exc_info=True,
        )


async def get_conversation(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> Conversation:
    await assert_active_participant(principal, conversation_id, uow.participants)
    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        raise ResourceConflictError(f"Participant rows reference missing conversation {conversation_id}")
    return conversation


async def list_conversations(
    principal: Principal,
    limit: int,
    uow: UnitOfWork,
) -> list[Conversation]:
    return await uow.conversations.list_for_user(principal.user_id, limit=limit)
