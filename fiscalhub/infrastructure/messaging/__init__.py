"""Realtime messaging: per-table change feed over Redis pub/sub."""

from fiscalhub.infrastructure.messaging.redis_change_feed import RedisChangeFeed

__all__ = ["RedisChangeFeed"]
