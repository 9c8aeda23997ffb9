"""Redis 客户端封装。"""

from feed_learning.core.infrastructure.redis.client import (
    RedisClient,
    RedisUnavailableError,
    get_async_redis_client,
    get_redis_client,
    redis_client,
)
from feed_learning.core.infrastructure.redis.keys import RedisKeys

__all__ = [
    "RedisClient",
    "RedisKeys",
    "RedisUnavailableError",
    "get_async_redis_client",
    "get_redis_client",
    "redis_client",
]
