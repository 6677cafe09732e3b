from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300
    DB_APPLICATION_NAME: str = "dm-service"

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_PUBSUB_CHANNEL: str = "dm.events"

    JWT_SECRET: str = ""
    JWT_VERIFY_MODE: Literal["hs256", "jwks"] = "hs256"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    JWKS_URL: str | None = None

    CORS_ORIGINS: list[str] = ["*"]

    # Video provider signing material (account sid + API key pair)
    VIDEO_ACCOUNT_SID: str = ""
    VIDEO_API_KEY_SID: str = ""
    VIDEO_API_KEY_SECRET: str = ""
    VIDEO_TOKEN_TTL_SECONDS: int = 86400
    VIDEO_ROOM_PREFIX: str = "conversation_"
    VIDEO_OVERRIDE_POLICY: Literal["ignore", "reject", "trust"] = "ignore"
    # unanswered invitations become "missed" after this long
    VIDEO_CALL_RING_TIMEOUT_SECONDS: int = 30
    CALL_SWEEP_INTERVAL: float = 5.0

    OUTBOX_POLL_INTERVAL: float = 1.0
    OUTBOX_BATCH_SIZE: int = 50
    OUTBOX_MAX_ATTEMPTS: int = 5

    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
