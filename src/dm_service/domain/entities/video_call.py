from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from dm_service.domain.call_lifecycle import ACTIVE_STATUSES
from dm_service.domain.value_objects.enums import CallStatus


@dataclass(frozen=True, slots=True)
class VideoCall:
    """One invitation to a conversation's video room, from ringing to hang-up."""

    id: UUID
    conversation_id: UUID
    room_name: str
    caller_party_id: str
    caller_user_id: str
    callee_party_id: str
    callee_user_id: str
    status: CallStatus
    created_at: datetime
    updated_at: datetime
    accepted_at: datetime | None = None
    ended_at: datetime | None = None
    end_reason: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def involves(self, user_id: str) -> bool:
        return user_id in (self.caller_user_id, self.callee_user_id)
