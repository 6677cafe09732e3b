from __future__ import annotations

from typing import Any

from dm_service.domain.entities.participant import Participant
from dm_service.infrastructure.db.models.participant import ParticipantModel


def model_to_entity(model: ParticipantModel) -> Participant:
    return Participant(
        conversation_id=model.conversation_id,
        party_id=model.party_id,
        joined_at=model.joined_at,
    )


def entity_to_values(entity: Participant) -> dict[str, Any]:
    return {
        "conversation_id": entity.conversation_id,
        "party_id": entity.party_id,
        "joined_at": entity.joined_at,
    }
