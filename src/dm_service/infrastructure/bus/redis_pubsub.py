from __future__ import annotations

import logging
from typing import Any, Mapping

import redis.asyncio as aioredis

from dm_service.infrastructure.bus.serializer import encode_event

logger = logging.getLogger(__name__)


class RedisPubSubPublisher:
    """EventPublisher over Redis PUBLISH. Delivery is fire-and-forget."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, event_type: str, data: Mapping[str, Any]) -> None:
        receivers = await self._redis.publish(channel, encode_event(event_type, data))
        if not receivers:
            logger.debug("No subscribers on %s for %s", channel, event_type)
