from __future__ import annotations

import jwt

from dm_service.application.dto.principal import Principal


def principal_from_claims(payload: dict) -> Principal:
    return Principal(
        user_id=str(payload["sub"]),
        role=payload.get("role", "authenticated"),
        email=payload.get("email"),
    )


class HS256Verifier:
    """Verify identity-service JWTs signed with a shared HS256 secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: str | None = None,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            audience=self._audience,
            options={"require": ["sub", "exp"], "verify_aud": self._audience is not None},
        )
        return principal_from_claims(payload)
