"""Canonical ordering of party pairs and the room naming derived from it.

Both the conversation resolver and the call issuer rely on these helpers,
so the ordering and the room format must never diverge between callers.
"""
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

DEFAULT_ROOM_PREFIX = "conversation_"


class InvalidPairError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class PartyPair:
    low: str
    high: str

    def __iter__(self):
        yield self.low
        yield self.high


def canonical_pair(party_a: str, party_b: str) -> PartyPair:
    """Order two party ids so that ``low < high`` by plain string comparison."""
    if not party_a or not party_b:
        raise InvalidPairError("Both party ids are required")
    if party_a == party_b:
        raise InvalidPairError("A party cannot start a conversation with itself")
    if party_a < party_b:
        return PartyPair(low=party_a, high=party_b)
    return PartyPair(low=party_b, high=party_a)


def room_name_for(conversation_id: UUID, prefix: str = DEFAULT_ROOM_PREFIX) -> str:
    return f"{prefix}{conversation_id}"


def parse_room_name(room_name: str, prefix: str = DEFAULT_ROOM_PREFIX) -> UUID | None:
    """Inverse of :func:`room_name_for`; ``None`` for foreign room names."""
    if not room_name.startswith(prefix):
        return None
    try:
        conversation_id = UUID(room_name[len(prefix):])
    except ValueError:
        return None
    # Reject non-canonical spellings (upper-case, braces, missing dashes).
    if room_name_for(conversation_id, prefix) != room_name:
        return None
    return conversation_id
