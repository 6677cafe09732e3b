from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    conversation_id: UUID
    sender_party_id: str
    type: str
    body: str
    client_msg_id: UUID
    created_at: datetime
