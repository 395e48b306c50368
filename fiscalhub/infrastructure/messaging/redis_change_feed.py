"""Redis pub/sub change feed: one channel per table.

Channel names are '{prefix}:{table}' and payloads are JSON
{"eventType": "INSERT"|"UPDATE"|"DELETE", "new": {...}, "old": {...}}.
Delivery is at-least-once and unordered across tables; consumers merge
events idempotently (see CachedCollection).
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

import redis.asyncio as redis

from fiscalhub.application.dtos.realtime import ChangeEvent
from fiscalhub.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class RedisChangeFeed:
    """IChangeFeed over Redis pub/sub.

    subscribe() is reentrant: each call uses a locally-scoped PubSub that is
    closed in finally, so several views may follow the same table.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = settings or get_settings()
        self.channel_prefix = self.settings.realtime_channel_prefix
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish the Redis connection. Call on startup."""
        if self._connected:
            return
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value()
                    if self.settings.redis_password
                    else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis change feed connected")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis change feed connection failed: %s", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close the Redis connection. Call on shutdown."""
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis change feed disconnected")

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    def channel(self, table: str) -> str:
        return f"{self.channel_prefix}:{table}"

    async def publish(self, table: str, event: ChangeEvent) -> bool:
        """Publish event on the table channel. Returns False if Redis is unavailable."""
        if not self.is_available() or self.redis is None:
            logger.debug("Redis not available, skipping publish")
            return False
        try:
            await self.redis.publish(self.channel(table), json.dumps(event.to_dict(), default=str))
        except redis.RedisError:
            logger.exception("Failed to publish change on %s", table)
            return False
        return True

    async def subscribe(self, table: str) -> AsyncIterator[ChangeEvent]:
        """Yield change events for table until the consumer stops iterating."""
        if not self.is_available() or self.redis is None:
            logger.warning("Redis not available for subscription to %s", table)
            return
        channel = self.channel(table)
        pubsub = self.redis.pubsub()
        try:
            await pubsub.subscribe(channel)
            logger.info("Subscribed to %s", channel)
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event = ChangeEvent.from_dict(json.loads(message["data"]))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                    logger.exception("Failed to parse change event on %s", channel)
                    continue
                yield event
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            logger.info("Unsubscribed from %s", channel)
