from __future__ import annotations

from typing import Protocol, Sequence

from dm_service.domain.entities.party import Party


class PartyReader(Protocol):
    async def get_by_id(self, party_id: str) -> Party | None: ...

    async def find_owned(
        self, user_id: str, party_ids: Sequence[str]
    ) -> list[Party]:
        """Return those of ``party_ids`` owned by ``user_id``."""
        ...
