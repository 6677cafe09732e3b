from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.video_call import VideoCall
from dm_service.domain.value_objects.enums import CallStatus


@dataclass(frozen=True, slots=True)
class CallInsertResult:
    """``call`` is ``None`` when the conversation already has an active call."""

    call: VideoCall | None

    @property
    def conflict(self) -> bool:
        return self.call is None


class VideoCallReader(Protocol):
    async def get_by_id(self, call_id: UUID) -> VideoCall | None: ...

    async def get_active_for_conversation(self, conversation_id: UUID) -> VideoCall | None: ...

    async def list_active_for_user(self, user_id: str, *, limit: int = 5) -> list[VideoCall]:
        """Ringing or accepted calls where the user is caller or callee, newest first."""
        ...


class VideoCallWriter(Protocol):
    async def insert_active(self, call: VideoCall) -> CallInsertResult:
        """Insert unless another active call holds the conversation."""
        ...

    async def update_if_status(self, call: VideoCall, expected: CallStatus) -> VideoCall | None:
        """Write ``call``'s status fields only if the stored status is still ``expected``.

        Returns the stored row, or ``None`` when someone else moved it first.
        """
        ...

    async def expire_ringing(
        self, started_before: datetime, now: datetime, reason: str
    ) -> list[VideoCall]:
        """Move every call ringing since before ``started_before`` to missed."""
        ...
