from __future__ import annotations

import uuid
from datetime import datetime, timezone

from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import InvalidInputError, UnauthorizedError
from dm_service.application.policies.permissions import NOT_A_PARTICIPANT, assert_party_owner
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.message import Message
from dm_service.domain.value_objects.enums import MessageType
from dm_service.services.conversation_service import resolve_conversation


async def send_message(
    sender_party_id: str,
    body: str,
    client_msg_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    *,
    conversation_id: uuid.UUID | None = None,
    recipient_party_id: str | None = None,
) -> tuple[Message, bool]:
    """Create a message idempotently.

    Without ``conversation_id`` the conversation with ``recipient_party_id``
    is resolved (and created if needed) first. Returns (message, created);
    a replayed ``client_msg_id`` yields the stored message with created=False.
    """
    if not body or not body.strip():
        raise InvalidInputError("Message body must not be empty")

    await assert_party_owner(principal, sender_party_id, uow.parties)

    if conversation_id is None:
        if not recipient_party_id:
            raise InvalidInputError("Either conversation_id or recipient_party_id is required")
        resolution = await resolve_conversation(sender_party_id, recipient_party_id, principal, uow)
        conversation_id = resolution.conversation.id
    elif not await uow.participants.is_participant(conversation_id, sender_party_id):
        raise UnauthorizedError(NOT_A_PARTICIPANT)

    msg = Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_party_id=sender_party_id,
        type=MessageType.TEXT,
        body=body,
        client_msg_id=client_msg_id,
        created_at=datetime.now(timezone.utc),
    )

    msg, created = await uow.messages_w.create_if_not_exists(msg)

    if created:
        await uow.conversations_w.touch_last_message_at(conversation_id, msg.created_at)
        await uow.outbox.add(
            "dm.message_created",
            {
                "message_id": str(msg.id),
                "conversation_id": str(msg.conversation_id),
                "sender_party_id": msg.sender_party_id,
                "type": msg.type,
                "body": msg.body,
            },
        )
        await uow.commit()

    return msg, created
