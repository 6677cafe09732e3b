from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from dm_service.domain.entities.video_call import VideoCall
from dm_service.domain.pairing import DEFAULT_ROOM_PREFIX
from dm_service.domain.value_objects.enums import OverridePolicy


@dataclass(frozen=True, slots=True)
class CallPolicy:
    ttl: timedelta = timedelta(hours=24)
    room_prefix: str = DEFAULT_ROOM_PREFIX
    override_policy: OverridePolicy = OverridePolicy.IGNORE


@dataclass(frozen=True, slots=True)
class IssuedCallCredential:
    conversation_id: UUID
    token: str
    room_name: str
    identity: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class CallInvitation:
    call: VideoCall
    created: bool
