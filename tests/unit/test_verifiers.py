from __future__ import annotations

import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from dm_service.infrastructure.auth.hs256_verifier import HS256Verifier
from dm_service.infrastructure.auth.jwks_verifier import JWKSVerifier

SECRET = "identity-secret-with-at-least-32-bytes"


def _claims(**extra) -> dict:
    return {"sub": "user-1", "exp": int(time.time()) + 60, "email": "a@example.com", **extra}


@pytest.mark.asyncio
async def test_hs256_verifier_builds_principal():
    verifier = HS256Verifier(SECRET)
    token = jwt.encode(_claims(role="authenticated"), SECRET, algorithm="HS256")

    principal = await verifier.verify(token)

    assert principal.user_id == "user-1"
    assert principal.role == "authenticated"
    assert principal.email == "a@example.com"


@pytest.mark.asyncio
async def test_hs256_verifier_requires_exp():
    verifier = HS256Verifier(SECRET)
    token = jwt.encode({"sub": "user-1"}, SECRET, algorithm="HS256")

    with pytest.raises(jwt.MissingRequiredClaimError):
        await verifier.verify(token)


@pytest.mark.asyncio
async def test_hs256_verifier_checks_audience_when_configured():
    verifier = HS256Verifier(SECRET, audience="authenticated")
    good = jwt.encode(_claims(aud="authenticated"), SECRET, algorithm="HS256")
    bad = jwt.encode(_claims(aud="service_role"), SECRET, algorithm="HS256")

    assert (await verifier.verify(good)).user_id == "user-1"
    with pytest.raises(jwt.InvalidAudienceError):
        await verifier.verify(bad)


class _StaticJWKClient:
    def __init__(self, key) -> None:
        self.key = key

    def get_signing_key_from_jwt(self, token: str):
        return self


@pytest.mark.asyncio
async def test_jwks_verifier_uses_fetched_key():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    verifier = JWKSVerifier("https://id.example.com/.well-known/jwks.json")
    verifier._jwk_client = _StaticJWKClient(private_key.public_key())
    token = jwt.encode(_claims(), private_key, algorithm="RS256")

    principal = await verifier.verify(token)

    assert principal.user_id == "user-1"
