"""Marks call invitations nobody answered as missed."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from dm_service.config import settings
from dm_service.infrastructure.db.session import AsyncSessionLocal
from dm_service.infrastructure.db.uow import SqlAlchemyUoW
from dm_service.services.call_invitation_service import expire_unanswered_calls

logger = logging.getLogger(__name__)


async def run_call_sweeper() -> None:
    ring_timeout = timedelta(seconds=settings.VIDEO_CALL_RING_TIMEOUT_SECONDS)
    logger.info(
        "Call sweeper started (interval=%.1fs, ring_timeout=%ss)",
        settings.CALL_SWEEP_INTERVAL,
        settings.VIDEO_CALL_RING_TIMEOUT_SECONDS,
    )
    while True:
        try:
            async with AsyncSessionLocal() as session:
                await expire_unanswered_calls(SqlAlchemyUoW(session), ring_timeout=ring_timeout)
        except Exception:
            logger.exception("Call sweeper loop error")
        await asyncio.sleep(settings.CALL_SWEEP_INTERVAL)


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_call_sweeper())


if __name__ == "__main__":
    main()
