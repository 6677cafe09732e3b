from __future__ import annotations

from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.message import Message


class MessageWriter(Protocol):
    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message. Return (message, created). On client_msg_id conflict return the existing row."""
        ...

    async def get_by_client_msg_id(
        self,
        conversation_id: UUID,
        sender_party_id: str,
        client_msg_id: UUID,
    ) -> Message | None: ...
