from __future__ import annotations

import asyncio

import jwt
from jwt import PyJWKClient

from dm_service.application.dto.principal import Principal
from dm_service.infrastructure.auth.hs256_verifier import principal_from_claims


class JWKSVerifier:
    """Verify JWTs using the identity service's JWKS endpoint."""

    def __init__(self, jwks_url: str, audience: str | None = None) -> None:
        self._jwks_url = jwks_url
        self._audience = audience
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> Principal:
        # PyJWKClient fetches keys with blocking urllib
        signing_key = await asyncio.to_thread(self._jwk_client.get_signing_key_from_jwt, token)
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            audience=self._audience,
            options={"require": ["sub", "exp"], "verify_aud": self._audience is not None},
        )
        return principal_from_claims(payload)
