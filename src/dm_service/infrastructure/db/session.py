from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from dm_service.config import settings


def make_engine(url: str | None = None) -> AsyncEngine:
    """Engine for the conversation store; the worker and the API each build one."""
    return create_async_engine(
        url or settings.database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        # shows up in pg_stat_activity next to the profile store's own clients
        connect_args={"server_settings": {"application_name": settings.DB_APPLICATION_NAME}},
    )


engine = make_engine()

AsyncSessionLocal = async_sessionmaker(engine, autoflush=False, expire_on_commit=False)
