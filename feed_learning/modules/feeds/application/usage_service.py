"""Feed usage tracking service.

在存储之上处理：
- 上报参数校验
- popular feeds 缓存（Redis，TTL）与失效
- 业务事件日志
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from feed_learning.core.config import settings
from feed_learning.core.infrastructure.logging import BusinessEvents
from feed_learning.core.infrastructure.redis.client import RedisClient
from feed_learning.core.infrastructure.redis.keys import RedisKeys
from feed_learning.modules.feeds.domain.entities import FeedUsage
from feed_learning.modules.feeds.domain.exceptions import InvalidUsageReportError
from feed_learning.modules.feeds.domain.repository import FeedUsageRepository


class FeedUsageService:
    """Record usage reports and serve usage rankings.

    Store failures while recording propagate to the caller: a silently lost
    report would corrupt the running averages. Cache failures only degrade
    to direct store reads.
    """

    def __init__(
        self,
        usage_repository: FeedUsageRepository,
        cache: RedisClient | None = None,
        cache_ttl_sec: int | None = None,
    ):
        self.usage_repository = usage_repository
        self.cache = cache
        self.cache_ttl_sec = (
            cache_ttl_sec
            if cache_ttl_sec is not None
            else settings.POPULAR_FEEDS_CACHE_TTL_SEC
        )

    async def record_usage(
        self,
        url: str,
        category_id: str,
        title: str,
        article_count: int,
        success: bool,
    ) -> FeedUsage:
        """Record one usage report for a feed in a category.

        Raises:
            InvalidUsageReportError: the report is malformed
        """
        self._validate_report(url, category_id, article_count)

        usage = await self.usage_repository.record_usage(
            url=url,
            category_id=category_id,
            title=title,
            article_count=article_count,
            success=success,
        )
        await self._invalidate_popular(category_id)

        BusinessEvents.feed_usage_recorded(
            url=url,
            category_id=category_id,
            article_count=article_count,
            success=success,
            usage_count=usage.usage_count,
        )
        logger.debug(
            f"Recorded usage: {url} for {category_id} "
            f"({article_count} articles, success: {success})"
        )
        return usage

    async def get_feed_stats(self, url: str, category_id: str) -> FeedUsage | None:
        return await self.usage_repository.get_usage(url, category_id)

    async def get_popular_feeds(
        self,
        category_id: str,
        limit: int | None = None,
    ) -> list[FeedUsage]:
        """Most used feeds of a category, served from cache when possible."""
        limit = limit if limit is not None else settings.POPULAR_FEEDS_DEFAULT_LIMIT
        if limit <= 0:
            return []

        cached = await self._read_popular(category_id, limit)
        if cached is not None:
            logger.debug(f"Cache hit for popular feeds: {category_id}")
            return cached

        feeds = await self.usage_repository.get_top_used(category_id, limit)
        await self._write_popular(category_id, limit, feeds)
        logger.debug(f"Popular feeds for {category_id}: {len(feeds)} feeds")
        return feeds

    async def clear_cache(self, category_id: str | None = None) -> None:
        if self.cache is None:
            return
        if category_id:
            await self.cache.delete(RedisKeys.popular_feeds(category_id))
            logger.info(f"Popular feeds cache cleared for {category_id}")
        else:
            await self.cache.delete_pattern(RedisKeys.popular_feeds_pattern())
            logger.info("Popular feeds cache cleared")

    @staticmethod
    def _validate_report(url: str, category_id: str, article_count: int) -> None:
        if not url:
            raise InvalidUsageReportError("url is required")
        if not category_id:
            raise InvalidUsageReportError("category_id is required")
        if isinstance(article_count, bool) or not isinstance(article_count, int):
            raise InvalidUsageReportError("article_count must be an integer")
        if article_count < 0:
            raise InvalidUsageReportError("article_count must be >= 0")

    async def _read_popular(
        self,
        category_id: str,
        limit: int,
    ) -> list[FeedUsage] | None:
        if self.cache is None:
            return None
        try:
            payload: dict[str, Any] | None = await self.cache.get_json(
                RedisKeys.popular_feeds(category_id)
            )
            # A list fetched with a smaller limit may be missing feeds.
            if not payload or payload.get("limit", 0) < limit:
                return None
            return [FeedUsage.model_validate(item) for item in payload["items"][:limit]]
        except PydanticValidationError as e:
            logger.warning(f"Discarding malformed popular feeds cache: {e}")
            return None
        except Exception as e:
            BusinessEvents.feature_degraded(
                feature="popular_feeds_cache",
                reason=f"cache read failed: {e}",
                category_id=category_id,
            )
            return None

    async def _write_popular(
        self,
        category_id: str,
        limit: int,
        feeds: list[FeedUsage],
    ) -> None:
        if self.cache is None:
            return
        payload = {
            "limit": limit,
            "items": [feed.model_dump(mode="json", by_alias=True) for feed in feeds],
        }
        try:
            await self.cache.set_json(
                RedisKeys.popular_feeds(category_id),
                payload,
                ex=self.cache_ttl_sec,
            )
        except Exception as e:
            BusinessEvents.feature_degraded(
                feature="popular_feeds_cache",
                reason=f"cache write failed: {e}",
                category_id=category_id,
            )

    async def _invalidate_popular(self, category_id: str) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.delete(RedisKeys.popular_feeds(category_id))
        except Exception as e:
            BusinessEvents.feature_degraded(
                feature="popular_feeds_cache",
                reason=f"cache invalidation failed: {e}",
                category_id=category_id,
            )
