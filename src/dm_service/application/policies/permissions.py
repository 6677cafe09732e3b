from __future__ import annotations

from uuid import UUID

from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import (
    ResourceInactiveError,
    UnauthorizedError,
)
from dm_service.application.repositories.participant import ParticipantReader
from dm_service.application.repositories.party import PartyReader
from dm_service.domain.entities.party import Party
from dm_service.domain.entities.video_call import VideoCall

# Same text for every denial so callers cannot tell who is a member.
NOT_A_PARTICIPANT = "Not a participant of this conversation"


async def assert_party_owner(
    principal: Principal,
    party_id: str,
    parties: PartyReader,
) -> Party:
    """Raise unless the principal owns an active party ``party_id``."""
    party = await parties.get_by_id(party_id)
    if party is None or party.owner_user_id != principal.user_id:
        raise UnauthorizedError("Party does not belong to the caller")
    if not party.is_active:
        raise ResourceInactiveError("Universe is not active")
    return party


async def assert_active_participant(
    principal: Principal,
    conversation_id: UUID,
    participants: ParticipantReader,
) -> Party:
    """Return the caller's active party in the conversation.

    Unknown conversations are reported exactly like foreign ones.
    """
    owned = await participants.find_caller_parties(conversation_id, principal.user_id)
    if not owned:
        raise UnauthorizedError(NOT_A_PARTICIPANT)
    for party in owned:
        if party.is_active:
            return party
    raise ResourceInactiveError("Universe is not active")


NOT_A_CALL_PARTY = "Not a participant of this call"


def assert_call_party(principal: Principal, call: VideoCall | None) -> VideoCall:
    """Unknown calls and other people's calls get the same answer."""
    if call is None or not call.involves(principal.user_id):
        raise UnauthorizedError(NOT_A_CALL_PARTY)
    return call


def assert_callee(principal: Principal, call: VideoCall) -> None:
    if principal.user_id != call.callee_user_id:
        raise UnauthorizedError("Only the invited party can answer this call")
