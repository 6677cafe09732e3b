from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol


class OutboxStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"
    # gave up after OUTBOX_MAX_ATTEMPTS; left for an operator to inspect
    DEAD = "dead"


@dataclass(frozen=True, slots=True)
class OutboxRecord:
    """A claimed event on its way to the bus."""

    id: int
    event_type: str
    payload: dict[str, Any]
    attempts: int


class OutboxWriter(Protocol):
    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        """Stage an event in the caller's transaction."""
        ...

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        """Claim due records, moving them to ``processing``."""
        ...

    async def mark_sent(self, ids: list[int]) -> None: ...

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None: ...

    async def mark_dead(self, ids: list[int]) -> None: ...
