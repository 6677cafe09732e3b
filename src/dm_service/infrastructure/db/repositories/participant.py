from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.participant import Participant
from dm_service.domain.entities.party import Party
from dm_service.infrastructure.db.mappers import participant as mapper
from dm_service.infrastructure.db.mappers import party as party_mapper
from dm_service.infrastructure.db.models.participant import MEMBER_CONSTRAINT, ParticipantModel
from dm_service.infrastructure.db.models.party import PartyModel


class ParticipantReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_participant(self, conversation_id: UUID, party_id: str) -> bool:
        stmt = (
            select(ParticipantModel.id)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.party_id == party_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_participants(self, conversation_id: UUID) -> list[Participant]:
        stmt = select(ParticipantModel).where(
            ParticipantModel.conversation_id == conversation_id
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def find_caller_parties(self, conversation_id: UUID, user_id: str) -> list[Party]:
        stmt = (
            select(PartyModel)
            .join(ParticipantModel, ParticipantModel.party_id == PartyModel.id)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                PartyModel.owner_user_id == user_id,
            )
            .order_by(PartyModel.id)
        )
        result = await self._session.execute(stmt)
        return [party_mapper.model_to_entity(m) for m in result.scalars().all()]


class ParticipantWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_ignore_duplicates(self, participants: Sequence[Participant]) -> int:
        if not participants:
            return 0
        stmt = (
            pg_insert(ParticipantModel)
            .values([mapper.entity_to_values(p) for p in participants])
            .on_conflict_do_nothing(constraint=MEMBER_CONSTRAINT)
            .returning(ParticipantModel.id)
        )
        result = await self._session.execute(stmt)
        return len(result.scalars().all())
