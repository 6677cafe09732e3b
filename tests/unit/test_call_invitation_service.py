from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from dm_service.application.exceptions import (
    InvalidInputError,
    ResourceConflictError,
    ResourceInactiveError,
    UnauthorizedError,
)
from dm_service.domain.entities.video_call import VideoCall
from dm_service.domain.pairing import room_name_for
from dm_service.domain.value_objects.enums import CallStatus
from dm_service.services import call_invitation_service as calls
from tests.conftest import ALICE_USER, BOB_USER, make_conversation

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture
def conversation(uow):
    return uow.add_conversation(make_conversation("u-alice", "u-bob"))


@pytest.fixture
def ringing(uow, conversation):
    """Alice is ringing Bob."""
    call = VideoCall(
        id=uuid.uuid4(),
        conversation_id=conversation.id,
        room_name=room_name_for(conversation.id),
        caller_party_id="u-alice",
        caller_user_id=ALICE_USER,
        callee_party_id="u-bob",
        callee_user_id=BOB_USER,
        status=CallStatus.RINGING,
        created_at=T0,
        updated_at=T0,
    )
    uow.video_calls._calls[call.id] = call
    return call


def _status_events(uow):
    return [r["payload"] for r in uow.outbox._records if r["event_type"] == "dm.call_status_changed"]


# start


@pytest.mark.asyncio
async def test_start_rings_the_other_party(alice, uow, conversation, clock):
    invitation = await calls.start_call(conversation.id, alice, uow, clock=clock)

    call = invitation.call
    assert invitation.created is True
    assert call.status is CallStatus.RINGING
    assert call.room_name == room_name_for(conversation.id)
    assert (call.caller_party_id, call.caller_user_id) == ("u-alice", ALICE_USER)
    assert (call.callee_party_id, call.callee_user_id) == ("u-bob", BOB_USER)
    assert call.created_at == T0
    assert uow.outbox._records[0]["event_type"] == "dm.call_started"
    assert uow._committed is True


@pytest.mark.asyncio
async def test_start_uses_configured_room_prefix(bob, uow, conversation):
    invitation = await calls.start_call(conversation.id, bob, uow, room_prefix="dm-")
    assert invitation.call.room_name == f"dm-{conversation.id}"
    assert invitation.call.callee_user_id == ALICE_USER


@pytest.mark.asyncio
async def test_start_returns_the_call_already_ringing(alice, bob, uow, conversation, ringing):
    again = await calls.start_call(conversation.id, alice, uow)
    from_callee = await calls.start_call(conversation.id, bob, uow)

    assert again.created is False and from_callee.created is False
    assert again.call.id == from_callee.call.id == ringing.id
    assert uow.video_calls_w.insert_attempts == 0
    assert uow._committed is False


@pytest.mark.asyncio
async def test_concurrent_starts_ring_once(alice, bob, uow, conversation):
    results = await asyncio.gather(
        calls.start_call(conversation.id, alice, uow),
        calls.start_call(conversation.id, bob, uow),
        calls.start_call(conversation.id, alice, uow),
    )

    assert len({r.call.id for r in results}) == 1
    assert sum(r.created for r in results) == 1
    assert len(uow.video_calls._calls) == 1


@pytest.mark.asyncio
async def test_start_after_hang_up_rings_again(alice, uow, conversation, ringing):
    await calls.end_call(ringing.id, alice, uow)

    fresh = await calls.start_call(conversation.id, alice, uow)

    assert fresh.created is True
    assert fresh.call.id != ringing.id


@pytest.mark.asyncio
async def test_outsider_cannot_start(mallory, uow, conversation):
    with pytest.raises(UnauthorizedError):
        await calls.start_call(conversation.id, mallory, uow)
    assert uow.video_calls._calls == {}


@pytest.mark.asyncio
async def test_inactive_caller_cannot_start(alice, uow, conversation):
    uow.add_party("u-alice", ALICE_USER, is_active=False)
    with pytest.raises(ResourceInactiveError):
        await calls.start_call(conversation.id, alice, uow)


@pytest.mark.asyncio
async def test_inactive_callee_cannot_be_rung(alice, uow, conversation):
    uow.add_party("u-bob", BOB_USER, is_active=False)
    with pytest.raises(ResourceInactiveError):
        await calls.start_call(conversation.id, alice, uow)


@pytest.mark.asyncio
async def test_start_without_other_member_is_rejected(alice, uow, conversation):
    uow.participants._participants[:] = [
        p for p in uow.participants._participants if p.party_id != "u-bob"
    ]
    with pytest.raises(InvalidInputError):
        await calls.start_call(conversation.id, alice, uow)


# answer


@pytest.mark.asyncio
async def test_callee_accepts(bob, uow, ringing, clock):
    clock.current = T0 + timedelta(seconds=4)

    call = await calls.accept_call(ringing.id, bob, uow, clock=clock)

    assert call.status is CallStatus.ACCEPTED
    assert call.accepted_at == clock.current
    assert call.ended_at is None
    assert _status_events(uow) == [{
        "call_id": str(ringing.id),
        "conversation_id": str(ringing.conversation_id),
        "room_name": ringing.room_name,
        "caller_user_id": ALICE_USER,
        "callee_user_id": BOB_USER,
        "status": "accepted",
        "previous_status": "ringing",
    }]
    assert uow._committed is True


@pytest.mark.asyncio
async def test_caller_cannot_answer_own_call(alice, uow, ringing):
    with pytest.raises(UnauthorizedError):
        await calls.accept_call(ringing.id, alice, uow)
    with pytest.raises(UnauthorizedError):
        await calls.reject_call(ringing.id, alice, uow)
    assert uow.video_calls._calls[ringing.id].status is CallStatus.RINGING


@pytest.mark.asyncio
async def test_outsiders_and_unknown_calls_look_the_same(mallory, uow, ringing):
    with pytest.raises(UnauthorizedError) as foreign:
        await calls.accept_call(ringing.id, mallory, uow)
    with pytest.raises(UnauthorizedError) as unknown:
        await calls.get_call(uuid.uuid4(), mallory, uow)
    assert foreign.value.detail == unknown.value.detail


@pytest.mark.asyncio
async def test_callee_declines(bob, uow, ringing):
    call = await calls.reject_call(ringing.id, bob, uow)

    assert call.status is CallStatus.REJECTED
    assert call.end_reason == "rejected"
    assert call.ended_at is not None


@pytest.mark.asyncio
async def test_callee_reports_busy(bob, uow, ringing):
    call = await calls.reject_call(ringing.id, bob, uow, reason="busy")

    assert call.status is CallStatus.BUSY
    assert call.end_reason == "busy"


@pytest.mark.asyncio
async def test_initiating_call_can_be_declined_but_not_hung_up(alice, bob, uow, ringing):
    uow.video_calls._calls[ringing.id] = replace(ringing, status=CallStatus.INITIATING)

    with pytest.raises(ResourceConflictError):
        await calls.end_call(ringing.id, alice, uow)
    call = await calls.reject_call(ringing.id, bob, uow)

    assert call.status is CallStatus.REJECTED


# hang up


@pytest.mark.asyncio
async def test_caller_cancels_while_ringing(alice, uow, ringing):
    call = await calls.end_call(ringing.id, alice, uow)

    assert call.status is CallStatus.ENDED
    assert call.end_reason == "ended"


@pytest.mark.asyncio
async def test_either_side_ends_accepted_call(alice, bob, uow, ringing):
    await calls.accept_call(ringing.id, bob, uow)

    call = await calls.end_call(ringing.id, alice, uow, reason="network")

    assert call.status is CallStatus.ENDED
    assert call.end_reason == "network"
    assert call.accepted_at is not None


# illegal moves


@pytest.mark.asyncio
async def test_accepted_call_cannot_be_declined_or_accepted_again(bob, uow, ringing):
    await calls.accept_call(ringing.id, bob, uow)

    with pytest.raises(ResourceConflictError):
        await calls.reject_call(ringing.id, bob, uow)
    with pytest.raises(ResourceConflictError):
        await calls.accept_call(ringing.id, bob, uow)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "terminal", [CallStatus.ENDED, CallStatus.REJECTED, CallStatus.MISSED, CallStatus.BUSY],
)
async def test_finished_calls_never_change(alice, bob, uow, ringing, terminal):
    uow.video_calls._calls[ringing.id] = replace(ringing, status=terminal)

    for attempt in (
        calls.accept_call(ringing.id, bob, uow),
        calls.reject_call(ringing.id, bob, uow),
        calls.end_call(ringing.id, alice, uow),
    ):
        with pytest.raises(ResourceConflictError):
            await attempt

    assert uow.video_calls._calls[ringing.id].status is terminal
    assert uow._committed is False
    assert _status_events(uow) == []


@pytest.mark.asyncio
async def test_losing_a_concurrent_answer_is_a_conflict(alice, bob, uow, ringing):
    real_update = uow.video_calls_w.update_if_status

    async def caller_hangs_up_first(call, expected):
        uow.video_calls._calls[ringing.id] = replace(ringing, status=CallStatus.ENDED)
        return await real_update(call, expected)

    uow.video_calls_w.update_if_status = caller_hangs_up_first

    with pytest.raises(ResourceConflictError, match="ended"):
        await calls.accept_call(ringing.id, bob, uow)
    assert uow._committed is False


# timeouts


@pytest.mark.asyncio
async def test_unanswered_calls_become_missed(alice, uow, conversation, ringing, clock):
    other = uow.add_conversation(make_conversation("u-alice", "u-mallory"))
    clock.current = T0 + timedelta(seconds=20)
    fresh = (await calls.start_call(other.id, alice, uow, clock=clock)).call
    uow.commits = 0

    clock.current = T0 + timedelta(seconds=31)
    missed = await calls.expire_unanswered_calls(
        uow, ring_timeout=timedelta(seconds=30), clock=clock,
    )

    assert [c.id for c in missed] == [ringing.id]
    stored = uow.video_calls._calls[ringing.id]
    assert stored.status is CallStatus.MISSED
    assert stored.end_reason == "timeout"
    assert uow.video_calls._calls[fresh.id].status is CallStatus.RINGING
    assert [e["status"] for e in _status_events(uow)] == ["missed"]
    assert uow._committed is True


@pytest.mark.asyncio
async def test_answered_calls_do_not_expire(bob, uow, ringing, clock):
    await calls.accept_call(ringing.id, bob, uow, clock=clock)
    uow.commits = 0

    clock.current = T0 + timedelta(minutes=10)
    missed = await calls.expire_unanswered_calls(uow, ring_timeout=timedelta(seconds=30), clock=clock)

    assert missed == []
    assert uow._committed is False


@pytest.mark.asyncio
async def test_missed_call_cannot_be_accepted(bob, uow, ringing, clock):
    clock.current = T0 + timedelta(minutes=1)
    await calls.expire_unanswered_calls(uow, ring_timeout=timedelta(seconds=30), clock=clock)

    with pytest.raises(ResourceConflictError):
        await calls.accept_call(ringing.id, bob, uow)


# reads


@pytest.mark.asyncio
async def test_active_calls_lists_live_calls_for_both_sides(alice, bob, mallory, uow, ringing):
    assert [c.id for c in await calls.list_active_calls(alice, uow)] == [ringing.id]
    assert [c.id for c in await calls.list_active_calls(bob, uow)] == [ringing.id]
    assert await calls.list_active_calls(mallory, uow) == []

    await calls.end_call(ringing.id, bob, uow)
    assert await calls.list_active_calls(alice, uow) == []
