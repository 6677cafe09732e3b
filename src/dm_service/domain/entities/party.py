from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Party:
    """A user-owned persona ("universe") that takes one side of a conversation."""

    id: str
    owner_user_id: str
    display_name: str
    is_active: bool
    created_at: datetime
