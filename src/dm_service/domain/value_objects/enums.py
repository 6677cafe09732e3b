from __future__ import annotations

from enum import StrEnum


class ConversationType(StrEnum):
    DIRECT = "direct"


class MessageType(StrEnum):
    TEXT = "text"
    SYSTEM = "system"


class OverridePolicy(StrEnum):
    """What the call issuer does with caller-supplied room/identity overrides."""

    IGNORE = "ignore"
    REJECT = "reject"
    TRUST = "trust"


class CallStatus(StrEnum):
    INITIATING = "initiating"
    RINGING = "ringing"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ENDED = "ended"
    MISSED = "missed"
    BUSY = "busy"
