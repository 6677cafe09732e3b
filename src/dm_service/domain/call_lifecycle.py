"""Status machine for call invitations.

A call rings until the invited party answers, declines or reports busy,
either side hangs up, or nobody answers in time. Terminal statuses never
change again.
"""
from __future__ import annotations

from dm_service.domain.value_objects.enums import CallStatus

ACTIVE_STATUSES = frozenset({CallStatus.INITIATING, CallStatus.RINGING, CallStatus.ACCEPTED})
TERMINAL_STATUSES = frozenset(CallStatus) - ACTIVE_STATUSES

TRANSITIONS: dict[CallStatus, frozenset[CallStatus]] = {
    CallStatus.INITIATING: frozenset({CallStatus.RINGING, CallStatus.REJECTED, CallStatus.BUSY}),
    CallStatus.RINGING: frozenset({
        CallStatus.ACCEPTED,
        CallStatus.REJECTED,
        CallStatus.BUSY,
        CallStatus.MISSED,
        CallStatus.ENDED,
    }),
    CallStatus.ACCEPTED: frozenset({CallStatus.ENDED}),
    **{status: frozenset() for status in TERMINAL_STATUSES},
}


class IllegalTransitionError(ValueError):
    def __init__(self, current: CallStatus, target: CallStatus) -> None:
        super().__init__(f"Call is {current}, cannot move to {target}")
        self.current = current
        self.target = target


def can_transition(current: CallStatus, target: CallStatus) -> bool:
    return target in TRANSITIONS[current]


def check_transition(current: CallStatus, target: CallStatus) -> None:
    if not can_transition(current, target):
        raise IllegalTransitionError(current, target)
