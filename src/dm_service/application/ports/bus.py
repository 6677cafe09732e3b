from __future__ import annotations

from typing import Any, Mapping, Protocol


class EventPublisher(Protocol):
    async def publish(self, channel: str, event_type: str, data: Mapping[str, Any]) -> None:
        """Hand one committed event to the bus; raises if the bus is unreachable."""
        ...
