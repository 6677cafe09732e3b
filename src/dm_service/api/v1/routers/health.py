from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from dm_service.infrastructure.db.session import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

READINESS_TIMEOUT_SECONDS = 2.0


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness only; never touches the store."""
    return {"status": "ok"}


async def _ping_store() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _ping_bus(request: Request) -> None:
    await request.app.state.redis.ping()


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    checks = {"postgres": _ping_store(), "redis": _ping_bus(request)}
    outcomes = await asyncio.gather(
        *(asyncio.wait_for(c, READINESS_TIMEOUT_SECONDS) for c in checks.values()),
        return_exceptions=True,
    )

    components: dict[str, str] = {}
    for name, outcome in zip(checks, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Readiness check %s failed: %r", name, outcome)
            components[name] = f"error: {outcome!r}"
        else:
            components[name] = "ok"

    ready = all(state == "ok" for state in components.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "unavailable", "components": components},
    )
