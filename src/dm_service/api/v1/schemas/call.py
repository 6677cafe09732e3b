from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CallTokenRequest(BaseModel):
    """Body of the call-start request; field names are camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    conversation_id: UUID
    room_name: str | None = None
    identity: str | None = None


class CallTokenResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str
    room_name: str
    identity: str
    expires_at: datetime


class StartCallRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    conversation_id: UUID


class FinishCallRequest(BaseModel):
    reason: str | None = Field(default=None, min_length=1, max_length=100)


class VideoCallResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    conversation_id: UUID
    room_name: str
    caller_party_id: str
    caller_user_id: str
    callee_party_id: str
    callee_user_id: str
    status: str
    created_at: datetime
    updated_at: datetime
    accepted_at: datetime | None
    ended_at: datetime | None
    end_reason: str | None
