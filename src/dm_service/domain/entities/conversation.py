from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    party_low: str
    party_high: str
    created_by: str
    type: str
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @property
    def party_ids(self) -> tuple[str, str]:
        return self.party_low, self.party_high
