"""Shared test fixtures and an in-memory unit of work."""
from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Sequence
from uuid import UUID

import pytest

from dm_service.application.dto.principal import Principal
from dm_service.application.repositories.conversation import InsertResult
from dm_service.application.repositories.outbox import OutboxRecord
from dm_service.application.repositories.video_call import CallInsertResult
from dm_service.domain.entities.conversation import Conversation
from dm_service.domain.entities.message import Message
from dm_service.domain.entities.participant import Participant
from dm_service.domain.entities.party import Party
from dm_service.domain.entities.video_call import VideoCall
from dm_service.domain.value_objects.enums import CallStatus, ConversationType

ALICE_USER = "user-alice"
BOB_USER = "user-bob"
MALLORY_USER = "user-mallory"


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id=ALICE_USER)


@pytest.fixture
def bob() -> Principal:
    return Principal(user_id=BOB_USER)


@pytest.fixture
def mallory() -> Principal:
    return Principal(user_id=MALLORY_USER)


def make_party(party_id: str, owner: str, *, is_active: bool = True) -> Party:
    return Party(
        id=party_id,
        owner_user_id=owner,
        display_name=party_id,
        is_active=is_active,
        created_at=datetime.now(timezone.utc),
    )


def make_conversation(
    party_low: str,
    party_high: str,
    *,
    conversation_id: UUID | None = None,
    created_by: str | None = None,
) -> Conversation:
    now = datetime.now(timezone.utc)
    return Conversation(
        id=conversation_id or uuid.uuid4(),
        party_low=party_low,
        party_high=party_high,
        created_by=created_by or party_low,
        type=ConversationType.DIRECT,
        last_message_at=None,
        created_at=now,
        updated_at=now,
    )


@dataclass
class FakePartyReader:
    _parties: dict[str, Party] = field(default_factory=dict)
    fail_lookup: bool = False

    async def get_by_id(self, party_id: str) -> Party | None:
        return self._parties.get(party_id)

    async def find_owned(self, user_id: str, party_ids: Sequence[str]) -> list[Party]:
        if self.fail_lookup:
            raise ConnectionError("profile store unreachable")
        return [
            p for pid in party_ids
            if (p := self._parties.get(pid)) is not None and p.owner_user_id == user_id
        ]


@dataclass
class FakeConversationReader:
    _store: dict[UUID, Conversation] = field(default_factory=dict)
    _participants: list[Participant] = field(default_factory=list)
    _parties: FakePartyReader | None = None

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        return self._store.get(conversation_id)

    async def get_by_pair(self, party_low: str, party_high: str) -> Conversation | None:
        # Yield so concurrent resolvers interleave between read and insert.
        await asyncio.sleep(0)
        for c in self._store.values():
            if c.party_low == party_low and c.party_high == party_high:
                return c
        return None

    async def list_for_user(self, user_id: str, *, limit: int = 50) -> list[Conversation]:
        assert self._parties is not None
        owned = {p.id for p in self._parties._parties.values() if p.owner_user_id == user_id}
        ids = {p.conversation_id for p in self._participants if p.party_id in owned}
        return [c for c in self._store.values() if c.id in ids][:limit]


@dataclass
class FakeConversationWriter:
    """Enforces the pair uniqueness constraint like the real table does."""

    _reader: FakeConversationReader
    insert_attempts: int = 0

    async def insert_unique(self, conversation: Conversation) -> InsertResult:
        self.insert_attempts += 1
        await asyncio.sleep(0)
        for c in self._reader._store.values():
            if (c.party_low, c.party_high) == (conversation.party_low, conversation.party_high):
                return InsertResult(conversation=None)
        self._reader._store[conversation.id] = conversation
        return InsertResult(conversation=conversation)

    async def touch_last_message_at(self, conversation_id: UUID, ts: datetime) -> None:
        conv = self._reader._store[conversation_id]
        self._reader._store[conversation_id] = replace(conv, last_message_at=ts)


@dataclass
class FakeParticipantReader:
    _participants: list[Participant] = field(default_factory=list)
    _parties: FakePartyReader | None = None

    async def is_participant(self, conversation_id: UUID, party_id: str) -> bool:
        return any(
            p.conversation_id == conversation_id and p.party_id == party_id
            for p in self._participants
        )

    async def list_participants(self, conversation_id: UUID) -> list[Participant]:
        return [p for p in self._participants if p.conversation_id == conversation_id]

    async def find_caller_parties(self, conversation_id: UUID, user_id: str) -> list[Party]:
        assert self._parties is not None
        found = []
        for p in self._participants:
            party = self._parties._parties.get(p.party_id)
            if p.conversation_id == conversation_id and party and party.owner_user_id == user_id:
                found.append(party)
        return found


@dataclass
class FakeParticipantWriter:
    _reader: FakeParticipantReader
    fail: bool = False

    async def add_ignore_duplicates(self, participants: Sequence[Participant]) -> int:
        if self.fail:
            raise ConnectionError("participants insert failed")
        inserted = 0
        for participant in participants:
            if not await self._reader.is_participant(participant.conversation_id, participant.party_id):
                self._reader._participants.append(participant)
                inserted += 1
        return inserted


@dataclass
class FakeMessageWriter:
    _messages: list[Message] = field(default_factory=list)

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        existing = await self.get_by_client_msg_id(
            message.conversation_id, message.sender_party_id, message.client_msg_id,
        )
        if existing is not None:
            return existing, False
        self._messages.append(message)
        return message, True

    async def get_by_client_msg_id(
        self, conversation_id: UUID, sender_party_id: str, client_msg_id: UUID,
    ) -> Message | None:
        for m in self._messages:
            if (
                m.conversation_id == conversation_id
                and m.sender_party_id == sender_party_id
                and m.client_msg_id == client_msg_id
            ):
                return m
        return None


@dataclass
class FakeVideoCallReader:
    _calls: dict[UUID, VideoCall] = field(default_factory=dict)

    async def get_by_id(self, call_id: UUID) -> VideoCall | None:
        return self._calls.get(call_id)

    async def get_active_for_conversation(self, conversation_id: UUID) -> VideoCall | None:
        await asyncio.sleep(0)
        for c in self._calls.values():
            if c.conversation_id == conversation_id and c.is_active:
                return c
        return None

    async def list_active_for_user(self, user_id: str, *, limit: int = 5) -> list[VideoCall]:
        live = [
            c for c in self._calls.values()
            if c.involves(user_id) and c.status in (CallStatus.RINGING, CallStatus.ACCEPTED)
        ]
        return sorted(live, key=lambda c: c.created_at, reverse=True)[:limit]


@dataclass
class FakeVideoCallWriter:
    """Enforces one active call per conversation like the partial unique index."""

    _reader: FakeVideoCallReader
    insert_attempts: int = 0

    async def insert_active(self, call: VideoCall) -> CallInsertResult:
        self.insert_attempts += 1
        await asyncio.sleep(0)
        for c in self._reader._calls.values():
            if c.conversation_id == call.conversation_id and c.is_active:
                return CallInsertResult(call=None)
        self._reader._calls[call.id] = call
        return CallInsertResult(call=call)

    async def update_if_status(self, call: VideoCall, expected: CallStatus) -> VideoCall | None:
        stored = self._reader._calls.get(call.id)
        if stored is None or stored.status != expected:
            return None
        self._reader._calls[call.id] = call
        return call

    async def expire_ringing(
        self, started_before: datetime, now: datetime, reason: str
    ) -> list[VideoCall]:
        expired = []
        for c in list(self._reader._calls.values()):
            if c.status == CallStatus.RINGING and c.created_at < started_before:
                missed = replace(
                    c, status=CallStatus.MISSED, updated_at=now, ended_at=now, end_reason=reason,
                )
                self._reader._calls[c.id] = missed
                expired.append(missed)
        return expired


@dataclass
class FakeOutboxWriter:
    _records: list[dict[str, Any]] = field(default_factory=list)
    pending: list[OutboxRecord] = field(default_factory=list)
    sent: list[int] = field(default_factory=list)
    failed: list[tuple[int, datetime]] = field(default_factory=list)
    dead: list[int] = field(default_factory=list)

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._records.append({"event_type": event_type, "payload": payload})

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        batch, self.pending = self.pending[:batch_size], self.pending[batch_size:]
        return batch

    async def mark_sent(self, ids: list[int]) -> None:
        self.sent.extend(ids)

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        self.failed.append((record_id, next_retry_at))

    async def mark_dead(self, ids: list[int]) -> None:
        self.dead.extend(ids)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""

    parties: FakePartyReader = field(default_factory=FakePartyReader)
    conversations: FakeConversationReader = field(default_factory=FakeConversationReader)
    conversations_w: FakeConversationWriter | None = None
    participants: FakeParticipantReader = field(default_factory=FakeParticipantReader)
    participants_w: FakeParticipantWriter | None = None
    messages_w: FakeMessageWriter = field(default_factory=FakeMessageWriter)
    video_calls: FakeVideoCallReader = field(default_factory=FakeVideoCallReader)
    video_calls_w: FakeVideoCallWriter | None = None
    outbox: FakeOutboxWriter = field(default_factory=FakeOutboxWriter)
    commits: int = 0
    savepoints_rolled_back: int = 0

    def __post_init__(self) -> None:
        self.conversations._parties = self.parties
        self.conversations._participants = self.participants._participants
        self.participants._parties = self.parties
        if self.conversations_w is None:
            self.conversations_w = FakeConversationWriter(self.conversations)
        if self.participants_w is None:
            self.participants_w = FakeParticipantWriter(self.participants)
        if self.video_calls_w is None:
            self.video_calls_w = FakeVideoCallWriter(self.video_calls)

    @property
    def _committed(self) -> bool:
        return self.commits > 0

    def add_party(self, party_id: str, owner: str, *, is_active: bool = True) -> Party:
        party = make_party(party_id, owner, is_active=is_active)
        self.parties._parties[party_id] = party
        return party

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations._store[conversation.id] = conversation
        for party_id in conversation.party_ids:
            self.participants._participants.append(
                Participant(
                    conversation_id=conversation.id,
                    party_id=party_id,
                    joined_at=conversation.created_at,
                )
            )
        return conversation

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        try:
            yield
        except Exception:
            self.savepoints_rolled_back += 1
            raise

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


@pytest.fixture
def uow() -> FakeUoW:
    """Two users, each owning one active party ("universe")."""
    store = FakeUoW()
    store.add_party("u-alice", ALICE_USER)
    store.add_party("u-bob", BOB_USER)
    store.add_party("u-mallory", MALLORY_USER)
    return store
