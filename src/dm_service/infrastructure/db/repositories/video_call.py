from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.application.repositories.video_call import CallInsertResult
from dm_service.domain.entities.video_call import VideoCall
from dm_service.domain.value_objects.enums import CallStatus
from dm_service.infrastructure.db.mappers import video_call as mapper
from dm_service.infrastructure.db.models.video_call import ACTIVE_PREDICATE, VideoCallModel

_LIVE = [CallStatus.RINGING, CallStatus.ACCEPTED]


class VideoCallReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, call_id: UUID) -> VideoCall | None:
        stmt = select(VideoCallModel).where(VideoCallModel.id == call_id)
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def get_active_for_conversation(self, conversation_id: UUID) -> VideoCall | None:
        stmt = (
            select(VideoCallModel)
            .where(VideoCallModel.conversation_id == conversation_id, ACTIVE_PREDICATE)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_active_for_user(self, user_id: str, *, limit: int = 5) -> list[VideoCall]:
        stmt = (
            select(VideoCallModel)
            .where(
                or_(
                    VideoCallModel.caller_user_id == user_id,
                    VideoCallModel.callee_user_id == user_id,
                ),
                VideoCallModel.status.in_(_LIVE),
            )
            .order_by(VideoCallModel.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class VideoCallWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert_active(self, call: VideoCall) -> CallInsertResult:
        stmt = (
            pg_insert(VideoCallModel)
            .values(**mapper.entity_to_values(call))
            .on_conflict_do_nothing(
                index_elements=[VideoCallModel.conversation_id],
                index_where=ACTIVE_PREDICATE,
            )
            .returning(VideoCallModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return CallInsertResult(call=mapper.model_to_entity(row) if row else None)

    async def update_if_status(self, call: VideoCall, expected: CallStatus) -> VideoCall | None:
        stmt = (
            update(VideoCallModel)
            .where(VideoCallModel.id == call.id, VideoCallModel.status == expected)
            .values(**mapper.status_values(call))
            .returning(VideoCallModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return mapper.model_to_entity(row) if row else None

    async def expire_ringing(
        self, started_before: datetime, now: datetime, reason: str
    ) -> list[VideoCall]:
        stmt = (
            update(VideoCallModel)
            .where(
                VideoCallModel.status == CallStatus.RINGING,
                VideoCallModel.created_at < started_before,
            )
            .values(status=CallStatus.MISSED, updated_at=now, ended_at=now, end_reason=reason)
            .returning(VideoCallModel)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]
