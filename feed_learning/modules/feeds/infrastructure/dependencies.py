"""Feed module dependencies."""

from feed_learning.core.infrastructure.redis.client import (
    RedisClient,
    get_redis_client,
)
from feed_learning.modules.feeds.application.learning_service import (
    FeedLearningService,
)
from feed_learning.modules.feeds.application.promotion_service import (
    FeedPromotionService,
)
from feed_learning.modules.feeds.application.usage_service import FeedUsageService
from feed_learning.modules.feeds.infrastructure.mappers import (
    CatalogFeedMapper,
    FeedUsageMapper,
)
from feed_learning.modules.feeds.infrastructure.repositories import (
    RedisFeedCatalog,
    RedisFeedUsageRepository,
)


def get_feed_usage_repository(
    redis_client: RedisClient | None = None,
) -> RedisFeedUsageRepository:
    return RedisFeedUsageRepository(redis_client or get_redis_client(), FeedUsageMapper())


def get_feed_catalog(redis_client: RedisClient | None = None) -> RedisFeedCatalog:
    return RedisFeedCatalog(redis_client or get_redis_client(), CatalogFeedMapper())


def get_feed_usage_service(redis_client: RedisClient | None = None) -> FeedUsageService:
    redis_client = redis_client or get_redis_client()
    return FeedUsageService(
        get_feed_usage_repository(redis_client),
        cache=redis_client,
    )


def get_feed_promotion_service(
    redis_client: RedisClient | None = None,
) -> FeedPromotionService:
    redis_client = redis_client or get_redis_client()
    return FeedPromotionService(
        get_feed_usage_repository(redis_client),
        get_feed_catalog(redis_client),
    )


def get_feed_learning_service(
    redis_client: RedisClient | None = None,
) -> FeedLearningService:
    redis_client = redis_client or get_redis_client()
    return FeedLearningService(
        get_feed_usage_service(redis_client),
        get_feed_promotion_service(redis_client),
    )
