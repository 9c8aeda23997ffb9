"""Feed repository implementations backed by Redis."""

from loguru import logger
from redis.exceptions import WatchError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from feed_learning.core.config import settings
from feed_learning.core.infrastructure.redis.client import RedisClient
from feed_learning.core.infrastructure.redis.keys import RedisKeys
from feed_learning.modules.feeds.domain.entities import CatalogFeed, FeedUsage
from feed_learning.modules.feeds.domain.exceptions import (
    FeedAlreadyInCatalogError,
    FeedUsageConflictError,
)
from feed_learning.modules.feeds.domain.repository import FeedUsageRepository
from feed_learning.modules.feeds.infrastructure.keys import (
    FEED_PREFIX,
    catalog_sk,
    category_key,
    pk_from_ranking_member,
    ranking_member,
    usage_pk,
)
from feed_learning.modules.feeds.infrastructure.mappers import (
    CatalogFeedMapper,
    FeedUsageMapper,
)


class RedisFeedUsageRepository(FeedUsageRepository):
    """Redis feed usage repository implementation.

    Each record is a hash at ``{table}:item:{len(PK)}:{PK}|{SK}``. The GSI1 ranking
    index is a zero-score sorted set per category whose members begin with
    the zero-padded GSI1SK, so ``ZREVRANGEBYLEX`` yields descending usage.
    Updates run under WATCH/MULTI/EXEC and retry on conflict.
    """

    def __init__(
        self,
        redis_client: RedisClient,
        mapper: FeedUsageMapper,
        table_name: str | None = None,
    ):
        self.redis = redis_client
        self.mapper = mapper
        self.table_name = table_name or settings.FEED_TABLE_NAME
        self.logger = logger

    def _item_key(self, url: str, category_id: str) -> str:
        return RedisKeys.item(self.table_name, usage_pk(url), category_key(category_id))

    def _index_key(self, category_id: str) -> str:
        return RedisKeys.gsi1(self.table_name, category_key(category_id))

    async def get_usage(self, url: str, category_id: str) -> FeedUsage | None:
        record = await self.redis.hgetall(self._item_key(url, category_id))
        return self.mapper.to_domain(record) if record else None

    async def record_usage(
        self,
        url: str,
        category_id: str,
        title: str,
        article_count: int,
        success: bool,
    ) -> FeedUsage:
        try:
            return await self._record_usage_once(
                url, category_id, title, article_count, success
            )
        except WatchError as e:
            raise FeedUsageConflictError(
                url, category_id, settings.FEED_USAGE_MAX_WRITE_ATTEMPTS
            ) from e

    @retry(
        retry=retry_if_exception_type(WatchError),
        stop=stop_after_attempt(settings.FEED_USAGE_MAX_WRITE_ATTEMPTS),
        wait=wait_random(min=0, max=0.05),
        reraise=True,
    )
    async def _record_usage_once(
        self,
        url: str,
        category_id: str,
        title: str,
        article_count: int,
        success: bool,
    ) -> FeedUsage:
        item_key = self._item_key(url, category_id)
        index_key = self._index_key(category_id)

        async with self.redis.pipeline() as pipe:
            await pipe.watch(item_key)
            record = await pipe.hgetall(item_key)

            if record:
                usage = self.mapper.to_domain(record)
                previous_member = ranking_member(usage.usage_count, url)
                usage.record_report(title, article_count, success)
            else:
                usage = FeedUsage.first_report(
                    url, category_id, title, article_count, success
                )
                previous_member = None

            pipe.multi()
            pipe.hset(item_key, mapping=self.mapper.to_model(usage))
            if previous_member is not None:
                pipe.zrem(index_key, previous_member)
            pipe.zadd(index_key, {ranking_member(usage.usage_count, url): 0})
            await pipe.execute()

        return usage

    async def get_top_used(self, category_id: str, limit: int) -> list[FeedUsage]:
        if limit <= 0:
            return []

        members = await self.redis.zrevrangebylex(self._index_key(category_id), limit)
        if not members:
            return []

        sk = category_key(category_id)
        item_keys = [
            RedisKeys.item(self.table_name, pk_from_ranking_member(member), sk)
            for member in members
        ]
        records = await self.redis.hgetall_many(item_keys)

        usages: list[FeedUsage] = []
        for member, record in zip(members, records, strict=True):
            if not record:
                self.logger.warning(f"Ranking entry without usage record: {member}")
                continue
            usages.append(self.mapper.to_domain(record))
        # A record may have advanced between the index read and the item read.
        usages.sort(key=lambda usage: usage.usage_count, reverse=True)
        return usages


class RedisFeedCatalog:
    """Redis implementation of the FeedCatalog port.

    Catalog feeds live in the same table as usage records under
    ``PK = CATEGORY#{category_id}``, ``SK = FEED#{url}``.
    """

    def __init__(
        self,
        redis_client: RedisClient,
        mapper: CatalogFeedMapper,
        table_name: str | None = None,
    ):
        self.redis = redis_client
        self.mapper = mapper
        self.table_name = table_name or settings.FEED_TABLE_NAME

    async def list_feeds(self, category_id: str) -> list[CatalogFeed]:
        pk = category_key(category_id)
        sort_keys = await self.redis.zrangebylex(
            RedisKeys.partition(self.table_name, pk),
            min_value=f"[{FEED_PREFIX}",
            # '$' is the character after '#', bounding the FEED# prefix
            max_value=f"({FEED_PREFIX[:-1]}$",
        )
        records = await self.redis.hgetall_many(
            [RedisKeys.item(self.table_name, pk, sk) for sk in sort_keys]
        )
        return [self.mapper.to_domain(record) for record in records if record]

    async def create_feed(self, feed: CatalogFeed) -> CatalogFeed:
        pk = category_key(feed.category_id)
        sk = catalog_sk(feed.url)
        item_key = RedisKeys.item(self.table_name, pk, sk)

        try:
            async with self.redis.pipeline() as pipe:
                await pipe.watch(item_key)
                if await pipe.exists(item_key):
                    raise FeedAlreadyInCatalogError(feed.category_id, feed.url)
                pipe.multi()
                pipe.hset(item_key, mapping=self.mapper.to_model(feed))
                pipe.zadd(RedisKeys.partition(self.table_name, pk), {sk: 0})
                await pipe.execute()
        except WatchError as e:
            # Another writer created the item between WATCH and EXEC.
            raise FeedAlreadyInCatalogError(feed.category_id, feed.url) from e

        logger.info(f"Created catalog feed {feed.url} in category {feed.category_id}")
        return feed
