from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.application.repositories.conversation import InsertResult
from dm_service.domain.entities.conversation import Conversation
from dm_service.infrastructure.db.mappers import conversation as mapper
from dm_service.infrastructure.db.models.conversation import PAIR_CONSTRAINT, ConversationModel
from dm_service.infrastructure.db.models.participant import ParticipantModel
from dm_service.infrastructure.db.models.party import PartyModel


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    async def get_by_pair(self, party_low: str, party_high: str) -> Conversation | None:
        stmt = select(ConversationModel).where(
            ConversationModel.party_low == party_low,
            ConversationModel.party_high == party_high,
        )
        # populate_existing: a re-read after a lost race must not return a stale identity-map row
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_id: str, *, limit: int = 50) -> list[Conversation]:
        member_of = (
            select(ParticipantModel.conversation_id)
            .join(PartyModel, PartyModel.id == ParticipantModel.party_id)
            .where(PartyModel.owner_user_id == user_id)
        )
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.id.in_(member_of))
            .order_by(
                ConversationModel.last_message_at.desc().nullslast(),
                ConversationModel.created_at.desc(),
            )
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert_unique(self, conversation: Conversation) -> InsertResult:
        """INSERT ... ON CONFLICT DO NOTHING on the pair constraint.

        A concurrent creator holding the pair blocks this statement until it
        commits; afterwards no row is returned and the caller re-reads.
        """
        stmt = (
            pg_insert(ConversationModel)
            .values(**mapper.entity_to_values(conversation))
            .on_conflict_do_nothing(constraint=PAIR_CONSTRAINT)
            .returning(ConversationModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            return InsertResult(conversation=None)
        return InsertResult(conversation=mapper.model_to_entity(row))

    async def touch_last_message_at(
        self,
        conversation_id: UUID,
        ts: datetime,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(last_message_at=ts)
        )
        await self._session.execute(stmt)
