"""Video-room access tokens in the provider's JWT format.

The provider validates signature, ``exp`` and the video grant when the
client joins; nothing here talks to the provider.
"""
from __future__ import annotations

from datetime import datetime, timedelta

import jwt

from dm_service.application.exceptions import UpstreamUnavailableError
from dm_service.domain.entities.call_credential import CallCredential

TOKEN_CONTENT_TYPE = "twilio-fpa;v=1"


class VideoAccessTokenSigner:
    """Signs access tokens with the provider-issued API key pair."""

    def __init__(self, account_sid: str, api_key_sid: str, api_key_secret: str) -> None:
        self._account_sid = account_sid
        self._api_key_sid = api_key_sid
        self._api_key_secret = api_key_secret

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._api_key_sid and self._api_key_secret)

    def sign(
        self,
        *,
        identity: str,
        room_name: str,
        issued_at: datetime,
        ttl: timedelta,
    ) -> CallCredential:
        if not self.configured:
            raise UpstreamUnavailableError("Video provider credentials not configured")

        expires_at = issued_at + ttl
        iat = int(issued_at.timestamp())
        payload = {
            "jti": f"{self._api_key_sid}-{iat}",
            "iss": self._api_key_sid,
            "sub": self._account_sid,
            "iat": iat,
            "nbf": iat,
            "exp": int(expires_at.timestamp()),
            "grants": {
                "identity": identity,
                "video": {"room": room_name},
            },
        }
        token = jwt.encode(
            payload,
            self._api_key_secret,
            algorithm="HS256",
            headers={"cty": TOKEN_CONTENT_TYPE},
        )
        return CallCredential(
            token=token,
            identity=identity,
            room_name=room_name,
            issued_at=issued_at,
            expires_at=expires_at,
        )
