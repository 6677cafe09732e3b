from __future__ import annotations

from typing import Any

from dm_service.domain.entities.conversation import Conversation
from dm_service.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        party_low=model.party_low,
        party_high=model.party_high,
        created_by=model.created_by,
        type=model.type,
        last_message_at=model.last_message_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_values(entity: Conversation) -> dict[str, Any]:
    """Column values for a core ``INSERT`` statement."""
    return {
        "id": entity.id,
        "party_low": entity.party_low,
        "party_high": entity.party_high,
        "created_by": entity.created_by,
        "type": str(entity.type),
        "last_message_at": entity.last_message_at,
        "created_at": entity.created_at,
        "updated_at": entity.updated_at,
    }
