from __future__ import annotations

import logging
import uuid

from dm_service.application.dto.call import CallPolicy, IssuedCallCredential
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import InvalidInputError
from dm_service.application.policies.permissions import assert_active_participant
from dm_service.application.ports.call_signer import CallCredentialSigner
from dm_service.application.ports.clock import Clock, SystemClock
from dm_service.application.uow import UnitOfWork
from dm_service.domain.pairing import parse_room_name, room_name_for
from dm_service.domain.value_objects.enums import OverridePolicy

logger = logging.getLogger(__name__)


async def issue_call_credential(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    signer: CallCredentialSigner,
    *,
    requested_room_name: str | None = None,
    requested_identity: str | None = None,
    policy: CallPolicy = CallPolicy(),
    clock: Clock = SystemClock(),
) -> IssuedCallCredential:
    """Authorize the caller against the conversation, then mint a room token.

    Nothing is stored: expiry is enforced by the video provider when the
    token is presented, so a leaked token is only good for ``policy.ttl``.
    """
    await assert_active_participant(principal, conversation_id, uow.participants)

    if requested_room_name:
        target = parse_room_name(requested_room_name, policy.room_prefix)
        if target is not None and target != conversation_id:
            raise InvalidInputError("Requested room name does not match this conversation")
    room_name = _bind(
        "room name",
        canonical=room_name_for(conversation_id, policy.room_prefix),
        requested=requested_room_name,
        policy=policy.override_policy,
    )
    identity = _bind(
        "identity",
        canonical=principal.user_id,
        requested=requested_identity,
        policy=policy.override_policy,
    )

    # JWT time claims are whole seconds; truncate so expires_at - issued_at == ttl.
    issued_at = clock.now().replace(microsecond=0)
    credential = signer.sign(
        identity=identity,
        room_name=room_name,
        issued_at=issued_at,
        ttl=policy.ttl,
    )

    logger.info(
        "Call credential issued user=%s conversation=%s room=%s identity=%s",
        principal.user_id,
        conversation_id,
        credential.room_name,
        credential.identity,
    )
    return IssuedCallCredential(
        conversation_id=conversation_id,
        token=credential.token,
        room_name=credential.room_name,
        identity=credential.identity,
        issued_at=credential.issued_at,
        expires_at=credential.expires_at,
    )


def _bind(
    field: str,
    *,
    canonical: str,
    requested: str | None,
    policy: OverridePolicy,
) -> str:
    if not requested or requested == canonical:
        return canonical
    if policy is OverridePolicy.TRUST:
        logger.warning("Binding caller-supplied %s %r without verification", field, requested)
        return requested
    if policy is OverridePolicy.REJECT:
        raise InvalidInputError(f"Requested {field} does not match this conversation")
    logger.warning("Ignoring caller-supplied %s %r; binding %r", field, requested, canonical)
    return canonical
