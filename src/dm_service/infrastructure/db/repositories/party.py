from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.party import Party
from dm_service.infrastructure.db.mappers import party as mapper
from dm_service.infrastructure.db.models.party import PartyModel


class PartyReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, party_id: str) -> Party | None:
        result = await self._session.get(PartyModel, party_id)
        return mapper.model_to_entity(result) if result else None

    async def find_owned(self, user_id: str, party_ids: Sequence[str]) -> list[Party]:
        if not party_ids:
            return []
        stmt = select(PartyModel).where(
            PartyModel.id.in_(list(party_ids)),
            PartyModel.owner_user_id == user_id,
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]
