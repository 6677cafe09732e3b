from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from the identity-service JWT."""

    user_id: str
    role: str = "authenticated"
    email: str | None = None
