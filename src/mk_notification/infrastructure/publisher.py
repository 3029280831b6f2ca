"""RedisListingPublisher — best-effort "listing X changed" fan-out over Redis pub/sub."""
import json
import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.mk_notification.domain.events import ListingChanged

logger = logging.getLogger(__name__)


class RedisListingPublisher:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]],
        channel_prefix: str = "listing:",
    ) -> None:
        self._redis_factory = redis_factory
        self._channel_prefix = channel_prefix

    def channel_for(self, listing_id: str) -> str:
        return f"{self._channel_prefix}{listing_id}"

    async def publish(self, signal: ListingChanged) -> None:
        message = json.dumps({"listing_id": signal.listing_id, "event": signal.event})
        try:
            redis = await self._redis_factory()
            receivers = await redis.publish(self.channel_for(signal.listing_id), message)
        except (RedisError, OSError):
            logger.exception("Realtime publish failed for listing=%s", signal.listing_id)
            return
        logger.debug(
            "Published %s for listing=%s to %d subscribers",
            signal.event, signal.listing_id, receivers,
        )
