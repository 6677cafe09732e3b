from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ResolveConversationRequest(BaseModel):
    party_a: str = Field(min_length=1, max_length=64)
    party_b: str = Field(min_length=1, max_length=64)


class ResolveConversationResponse(BaseModel):
    conversation_id: UUID
    created: bool


class ConversationResponse(BaseModel):
    id: UUID
    party_low: str
    party_high: str
    created_by: str
    type: str
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
