from __future__ import annotations

from typing import Protocol

from dm_service.application.dto.principal import Principal


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Principal:
        """Check an identity-service bearer token and return who presented it.

        Raises ``jwt.PyJWTError`` for a bad signature, a wrong audience or an
        expired token, and ``KeyError``/``ValueError`` when a required claim
        is missing or malformed. The HTTP layer turns all of them into 401.
        """
        ...
