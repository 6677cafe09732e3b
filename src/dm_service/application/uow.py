from __future__ import annotations

from typing import AsyncContextManager, Protocol

from dm_service.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from dm_service.application.repositories.message import MessageWriter
from dm_service.application.repositories.outbox import OutboxWriter
from dm_service.application.repositories.participant import (
    ParticipantReader,
    ParticipantWriter,
)
from dm_service.application.repositories.party import PartyReader
from dm_service.application.repositories.video_call import VideoCallReader, VideoCallWriter


class UnitOfWork(Protocol):
    parties: PartyReader
    conversations: ConversationReader
    conversations_w: ConversationWriter
    participants: ParticipantReader
    participants_w: ParticipantWriter
    messages_w: MessageWriter
    video_calls: VideoCallReader
    video_calls_w: VideoCallWriter
    outbox: OutboxWriter

    def savepoint(self) -> AsyncContextManager[object]:
        """Nested transaction; an error inside rolls back only the nested part."""
        ...

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
