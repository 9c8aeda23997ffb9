"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（不依赖外部服务）
- integration/: 集成测试（需要 Redis）

使用方法：
    # 运行所有测试
    uv run pytest

    # 只运行单元测试
    uv run pytest tests/unit/

    # 只运行集成测试（需要 Redis，默认 redis://localhost:6379/15）
    REDIS_TEST_URL=redis://localhost:6379/15 uv run pytest tests/integration/ -m integration
"""

from collections import OrderedDict
from unittest.mock import AsyncMock, MagicMock

import pytest

from feed_learning.modules.feeds.domain.entities import CatalogFeed, FeedUsage
from feed_learning.modules.feeds.domain.exceptions import FeedAlreadyInCatalogError
from feed_learning.modules.feeds.domain.repository import FeedUsageRepository

# ============================================
# 配置 Fixtures
# ============================================


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ============================================
# 内存替身
# ============================================


class InMemoryFeedUsageRepository(FeedUsageRepository):
    """In-memory usage store; ``failing_urls`` raise on record/get."""

    def __init__(self) -> None:
        self.records: OrderedDict[tuple[str, str], FeedUsage] = OrderedDict()
        self.failing_urls: set[str] = set()
        self.record_calls = 0

    def _check(self, url: str) -> None:
        if url in self.failing_urls:
            raise ConnectionError(f"store unavailable for {url}")

    async def get_usage(self, url: str, category_id: str) -> FeedUsage | None:
        self._check(url)
        usage = self.records.get((url, category_id))
        return usage.model_copy() if usage else None

    async def record_usage(
        self,
        url: str,
        category_id: str,
        title: str,
        article_count: int,
        success: bool,
    ) -> FeedUsage:
        self._check(url)
        self.record_calls += 1
        existing = self.records.get((url, category_id))
        if existing is None:
            usage = FeedUsage.first_report(
                url, category_id, title, article_count, success
            )
        else:
            usage = existing.model_copy()
            usage.record_report(title, article_count, success)
        self.records[(url, category_id)] = usage
        return usage.model_copy()

    async def get_top_used(self, category_id: str, limit: int) -> list[FeedUsage]:
        usages = [
            usage
            for (_, usage_category), usage in self.records.items()
            if usage_category == category_id
        ]
        usages.sort(key=lambda usage: (usage.usage_count, usage.url), reverse=True)
        return [usage.model_copy() for usage in usages[: max(limit, 0)]]


class InMemoryFeedCatalog:
    """In-memory catalog; ``failing_creates`` raise on create_feed."""

    def __init__(self, feeds: list[CatalogFeed] | None = None) -> None:
        self.feeds: OrderedDict[tuple[str, str], CatalogFeed] = OrderedDict()
        for feed in feeds or []:
            self.feeds[(feed.category_id, feed.url)] = feed
        self.failing_creates: set[str] = set()
        self.list_error: Exception | None = None

    async def list_feeds(self, category_id: str) -> list[CatalogFeed]:
        if self.list_error is not None:
            raise self.list_error
        return [
            feed
            for (feed_category, _), feed in self.feeds.items()
            if feed_category == category_id
        ]

    async def create_feed(self, feed: CatalogFeed) -> CatalogFeed:
        if feed.url in self.failing_creates:
            raise ConnectionError(f"catalog write failed for {feed.url}")
        key = (feed.category_id, feed.url)
        if key in self.feeds:
            raise FeedAlreadyInCatalogError(feed.category_id, feed.url)
        self.feeds[key] = feed
        return feed


@pytest.fixture
def usage_repository() -> InMemoryFeedUsageRepository:
    return InMemoryFeedUsageRepository()


@pytest.fixture
def feed_catalog() -> InMemoryFeedCatalog:
    return InMemoryFeedCatalog()


# ============================================
# Redis Fixtures
# ============================================


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Mock Redis 客户端。"""
    from feed_learning.core.infrastructure.redis.client import RedisClient

    client = MagicMock(spec=RedisClient)
    client.ping = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.delete_pattern = AsyncMock(return_value=0)
    client.get_json = AsyncMock(return_value=None)
    client.set_json = AsyncMock(return_value=True)
    return client
