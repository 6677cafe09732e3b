"""Call invitations: who rang whom in which conversation, and how it ended.

Every status change is a compare-and-set on the stored status, so two
devices answering the same call cannot both win. Each change stages an
outbox event in the same transaction.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import timedelta
from typing import Any

from dm_service.application.dto.call import CallInvitation
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import (
    InvalidInputError,
    ResourceConflictError,
    ResourceInactiveError,
)
from dm_service.application.policies.permissions import (
    assert_active_participant,
    assert_call_party,
    assert_callee,
)
from dm_service.application.ports.clock import Clock, SystemClock
from dm_service.application.uow import UnitOfWork
from dm_service.domain.call_lifecycle import IllegalTransitionError, check_transition
from dm_service.domain.entities.party import Party
from dm_service.domain.entities.video_call import VideoCall
from dm_service.domain.pairing import DEFAULT_ROOM_PREFIX, room_name_for
from dm_service.domain.value_objects.enums import CallStatus

logger = logging.getLogger(__name__)

BUSY_REASON = "busy"
MISSED_REASON = "timeout"


async def start_call(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    *,
    room_prefix: str = DEFAULT_ROOM_PREFIX,
    clock: Clock = SystemClock(),
) -> CallInvitation:
    """Ring the other party of the conversation.

    If a call is already ringing or running there, that call is returned
    with ``created=False`` instead of starting a second one.
    """
    caller_party = await assert_active_participant(principal, conversation_id, uow.participants)

    existing = await uow.video_calls.get_active_for_conversation(conversation_id)
    if existing is not None:
        return CallInvitation(existing, created=False)

    callee_party = await _other_party(conversation_id, caller_party.id, uow)
    now = clock.now()
    candidate = VideoCall(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        room_name=room_name_for(conversation_id, room_prefix),
        caller_party_id=caller_party.id,
        caller_user_id=principal.user_id,
        callee_party_id=callee_party.id,
        callee_user_id=callee_party.owner_user_id,
        status=CallStatus.RINGING,
        created_at=now,
        updated_at=now,
    )

    result = await uow.video_calls_w.insert_active(candidate)
    if result.conflict:
        winner = await uow.video_calls.get_active_for_conversation(conversation_id)
        if winner is None:
            raise ResourceConflictError("Call state changed concurrently, retry")
        return CallInvitation(winner, created=False)

    call = result.call
    assert call is not None
    await uow.outbox.add("dm.call_started", _event_payload(call))
    await uow.commit()
    logger.info(
        "Call %s started conversation=%s caller=%s callee=%s",
        call.id,
        conversation_id,
        call.caller_party_id,
        call.callee_party_id,
    )
    return CallInvitation(call, created=True)


async def accept_call(
    call_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    *,
    clock: Clock = SystemClock(),
) -> VideoCall:
    call = assert_call_party(principal, await uow.video_calls.get_by_id(call_id))
    assert_callee(principal, call)
    now = clock.now()
    return await _move(
        call,
        replace(call, status=CallStatus.ACCEPTED, accepted_at=now, updated_at=now),
        uow,
    )


async def reject_call(
    call_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    *,
    reason: str | None = None,
    clock: Clock = SystemClock(),
) -> VideoCall:
    """Decline an incoming call. ``reason="busy"`` records it as busy."""
    call = assert_call_party(principal, await uow.video_calls.get_by_id(call_id))
    assert_callee(principal, call)
    target = CallStatus.BUSY if reason == BUSY_REASON else CallStatus.REJECTED
    now = clock.now()
    return await _move(
        call,
        replace(
            call,
            status=target,
            ended_at=now,
            end_reason=reason or str(CallStatus.REJECTED),
            updated_at=now,
        ),
        uow,
    )


async def end_call(
    call_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    *,
    reason: str | None = None,
    clock: Clock = SystemClock(),
) -> VideoCall:
    """Hang up; either side may, while the call rings or runs."""
    call = assert_call_party(principal, await uow.video_calls.get_by_id(call_id))
    now = clock.now()
    return await _move(
        call,
        replace(
            call,
            status=CallStatus.ENDED,
            ended_at=now,
            end_reason=reason or str(CallStatus.ENDED),
            updated_at=now,
        ),
        uow,
    )


async def get_call(call_id: uuid.UUID, principal: Principal, uow: UnitOfWork) -> VideoCall:
    return assert_call_party(principal, await uow.video_calls.get_by_id(call_id))


async def list_active_calls(principal: Principal, uow: UnitOfWork) -> list[VideoCall]:
    return await uow.video_calls.list_active_for_user(principal.user_id)


async def expire_unanswered_calls(
    uow: UnitOfWork,
    *,
    ring_timeout: timedelta,
    clock: Clock = SystemClock(),
) -> list[VideoCall]:
    """Mark calls that rang longer than ``ring_timeout`` as missed."""
    now = clock.now()
    missed = await uow.video_calls_w.expire_ringing(now - ring_timeout, now, MISSED_REASON)
    if not missed:
        return []
    for call in missed:
        await uow.outbox.add(
            "dm.call_status_changed",
            _event_payload(call, previous=CallStatus.RINGING),
        )
    await uow.commit()
    logger.info("Marked %d unanswered calls as missed", len(missed))
    return missed


async def _other_party(conversation_id: uuid.UUID, caller_party_id: str, uow: UnitOfWork) -> Party:
    members = await uow.participants.list_participants(conversation_id)
    others = [m.party_id for m in members if m.party_id != caller_party_id]
    if not others:
        raise InvalidInputError("Conversation has nobody to call")
    callee = await uow.parties.get_by_id(others[0])
    if callee is None:
        raise ResourceConflictError("Conversation references a missing party")
    if not callee.is_active:
        raise ResourceInactiveError("Universe is not active")
    return callee


async def _move(current: VideoCall, target: VideoCall, uow: UnitOfWork) -> VideoCall:
    try:
        check_transition(current.status, target.status)
    except IllegalTransitionError as exc:
        raise ResourceConflictError(str(exc)) from exc

    stored = await uow.video_calls_w.update_if_status(target, expected=current.status)
    if stored is None:
        latest = await uow.video_calls.get_by_id(current.id)
        now_status = latest.status if latest else "gone"
        raise ResourceConflictError(f"Call is {now_status}, cannot move to {target.status}")

    await uow.outbox.add("dm.call_status_changed", _event_payload(stored, previous=current.status))
    await uow.commit()
    logger.info("Call %s %s -> %s", stored.id, current.status, stored.status)
    return stored


def _event_payload(call: VideoCall, *, previous: CallStatus | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "call_id": str(call.id),
        "conversation_id": str(call.conversation_id),
        "room_name": call.room_name,
        "caller_user_id": call.caller_user_id,
        "callee_user_id": call.callee_user_id,
        "status": str(call.status),
    }
    if previous is not None:
        payload["previous_status"] = str(previous)
    if call.end_reason is not None:
        payload["end_reason"] = call.end_reason
    return payload
