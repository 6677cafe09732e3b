from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.conversation import Conversation


@dataclass(frozen=True, slots=True)
class InsertResult:
    """Outcome of an insert guarded by the ``(party_low, party_high)`` constraint.

    ``conversation`` is the freshly inserted row, or ``None`` when another
    writer already holds the pair.
    """

    conversation: Conversation | None

    @property
    def conflict(self) -> bool:
        return self.conversation is None


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def get_by_pair(self, party_low: str, party_high: str) -> Conversation | None: ...

    async def list_for_user(self, user_id: str, *, limit: int = 50) -> list[Conversation]: ...


class ConversationWriter(Protocol):
    async def insert_unique(self, conversation: Conversation) -> InsertResult: ...

    async def touch_last_message_at(
        self, conversation_id: UUID, ts: datetime
    ) -> None: ...
