from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

from dm_service.domain.entities.call_credential import CallCredential


class CallCredentialSigner(Protocol):
    """Mints a video-provider access token granting a single room."""

    def sign(
        self,
        *,
        identity: str,
        room_name: str,
        issued_at: datetime,
        ttl: timedelta,
    ) -> CallCredential: ...
