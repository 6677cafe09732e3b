from __future__ import annotations

from typing import Any

from dm_service.domain.entities.video_call import VideoCall
from dm_service.domain.value_objects.enums import CallStatus
from dm_service.infrastructure.db.models.video_call import VideoCallModel


def model_to_entity(model: VideoCallModel) -> VideoCall:
    return VideoCall(
        id=model.id,
        conversation_id=model.conversation_id,
        room_name=model.room_name,
        caller_party_id=model.caller_party_id,
        caller_user_id=model.caller_user_id,
        callee_party_id=model.callee_party_id,
        callee_user_id=model.callee_user_id,
        status=CallStatus(model.status),
        created_at=model.created_at,
        updated_at=model.updated_at,
        accepted_at=model.accepted_at,
        ended_at=model.ended_at,
        end_reason=model.end_reason,
    )


def entity_to_values(entity: VideoCall) -> dict[str, Any]:
    return {
        "id": entity.id,
        "conversation_id": entity.conversation_id,
        "room_name": entity.room_name,
        "caller_party_id": entity.caller_party_id,
        "caller_user_id": entity.caller_user_id,
        "callee_party_id": entity.callee_party_id,
        "callee_user_id": entity.callee_user_id,
        "status": str(entity.status),
        "created_at": entity.created_at,
        "updated_at": entity.updated_at,
        "accepted_at": entity.accepted_at,
        "ended_at": entity.ended_at,
        "end_reason": entity.end_reason,
    }


def status_values(entity: VideoCall) -> dict[str, Any]:
    """Columns a status change may touch."""
    return {
        "status": str(entity.status),
        "updated_at": entity.updated_at,
        "accepted_at": entity.accepted_at,
        "ended_at": entity.ended_at,
        "end_reason": entity.end_reason,
    }
