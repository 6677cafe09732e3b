from __future__ import annotations

from dataclasses import dataclass

from dm_service.domain.entities.conversation import Conversation


@dataclass(frozen=True, slots=True)
class ConversationResolution:
    conversation: Conversation
    created: bool
