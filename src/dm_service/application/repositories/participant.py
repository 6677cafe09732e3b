from __future__ import annotations

from typing import Protocol, Sequence
from uuid import UUID

from dm_service.domain.entities.participant import Participant
from dm_service.domain.entities.party import Party


class ParticipantReader(Protocol):
    async def is_participant(self, conversation_id: UUID, party_id: str) -> bool: ...

    async def list_participants(
        self, conversation_id: UUID
    ) -> list[Participant]: ...

    async def find_caller_parties(
        self, conversation_id: UUID, user_id: str
    ) -> list[Party]:
        """Parties owned by ``user_id`` that participate in the conversation."""
        ...


class ParticipantWriter(Protocol):
    async def add_ignore_duplicates(self, participants: Sequence[Participant]) -> int:
        """Insert participants, skipping ones already present. Returns rows inserted."""
        ...
