from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    sender_party_id: str = Field(min_length=1, max_length=64)
    recipient_party_id: str | None = Field(default=None, max_length=64)
    conversation_id: UUID | None = None
    client_msg_id: UUID
    body: str = Field(min_length=1, max_length=10_000)


class MessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_party_id: str
    type: str
    body: str
    client_msg_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}
