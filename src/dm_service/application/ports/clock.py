from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Protocol


class Clock(Protocol):
    """Time source for anything that stamps or expires a record."""

    def now(self) -> datetime: ...


@dataclass(frozen=True, slots=True)
class SystemClock:
    tz: tzinfo = timezone.utc

    def now(self) -> datetime:
        return datetime.now(self.tz)
