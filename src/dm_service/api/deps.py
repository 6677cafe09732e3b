"""FastAPI dependency injection helpers."""
from __future__ import annotations

from datetime import timedelta
from typing import Annotated, AsyncIterator

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dm_service.application.dto.call import CallPolicy
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import UnauthenticatedError
from dm_service.application.ports.auth import TokenVerifier
from dm_service.application.ports.call_signer import CallCredentialSigner
from dm_service.config import settings
from dm_service.domain.value_objects.enums import OverridePolicy
from dm_service.infrastructure.auth.hs256_verifier import HS256Verifier
from dm_service.infrastructure.auth.jwks_verifier import JWKSVerifier
from dm_service.infrastructure.db.session import AsyncSessionLocal
from dm_service.infrastructure.db.uow import SqlAlchemyUoW
from dm_service.infrastructure.video.access_token import VideoAccessTokenSigner

# auto_error=False: a missing header must be a 401, not FastAPI's default 403
_bearer_scheme = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL, audience=settings.JWT_AUDIENCE)
    return HS256Verifier(
        settings.JWT_SECRET,
        settings.JWT_ALGORITHM,
        audience=settings.JWT_AUDIENCE,
    )


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Principal:
    if credentials is None:
        raise UnauthenticatedError("No authorization header")
    verifier = get_verifier()
    try:
        return await verifier.verify(credentials.credentials)
    except (jwt.PyJWTError, KeyError, ValueError) as exc:
        raise UnauthenticatedError("Invalid authentication token") from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def get_call_signer() -> CallCredentialSigner:
    return VideoAccessTokenSigner(
        settings.VIDEO_ACCOUNT_SID,
        settings.VIDEO_API_KEY_SID,
        settings.VIDEO_API_KEY_SECRET,
    )


CallSignerDep = Annotated[CallCredentialSigner, Depends(get_call_signer)]


def get_call_policy() -> CallPolicy:
    return CallPolicy(
        ttl=timedelta(seconds=settings.VIDEO_TOKEN_TTL_SECONDS),
        room_prefix=settings.VIDEO_ROOM_PREFIX,
        override_policy=OverridePolicy(settings.VIDEO_OVERRIDE_POLICY),
    )


CallPolicyDep = Annotated[CallPolicy, Depends(get_call_policy)]
