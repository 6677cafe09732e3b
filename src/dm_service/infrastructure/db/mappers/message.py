from __future__ import annotations

from typing import Any

from dm_service.domain.entities.message import Message
from dm_service.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_party_id=model.sender_party_id,
        type=model.type,
        body=model.body,
        client_msg_id=model.client_msg_id,
        created_at=model.created_at,
    )


def entity_to_values(entity: Message) -> dict[str, Any]:
    return {
        "id": entity.id,
        "conversation_id": entity.conversation_id,
        "sender_party_id": entity.sender_party_id,
        "type": str(entity.type),
        "body": entity.body,
        "client_msg_id": entity.client_msg_id,
        "created_at": entity.created_at,
    }
