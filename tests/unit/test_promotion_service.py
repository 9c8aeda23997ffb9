"""Feed promotion service tests."""

from __future__ import annotations

import pytest

from feed_learning.modules.feeds.application.models import PromotionOutcome
from feed_learning.modules.feeds.application.promotion_service import (
    FeedPromotionService,
)
from feed_learning.modules.feeds.domain.entities import CatalogFeed

pytestmark = pytest.mark.anyio

CATEGORY = "tech"


async def _report(repository, url: str, reports: list[tuple[int, bool]]) -> None:
    for article_count, success in reports:
        await repository.record_usage(url, CATEGORY, "Feed", article_count, success)


def _catalog_feed(url: str) -> CatalogFeed:
    return CatalogFeed(
        category_id=CATEGORY,
        url=url,
        title="Curated",
        description="hand picked",
        language="en",
        priority=10,
    )


@pytest.fixture
def service(usage_repository, feed_catalog) -> FeedPromotionService:
    return FeedPromotionService(usage_repository, feed_catalog)


class TestPromoteIfQualified:
    async def test_qualified_feed_is_promoted(self, service, usage_repository, feed_catalog):
        url = "https://example.com/rss"
        await _report(usage_repository, url, [(5, True)] * 3)

        result = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert result.outcome is PromotionOutcome.PROMOTED
        assert result.promoted is True
        assert result.priority == 97
        feed = feed_catalog.feeds[(CATEGORY, url)]
        assert feed.title == "Example"
        assert feed.priority == 97
        assert feed.is_active is True
        assert feed.language == "en"
        assert "3 uses" in feed.description
        assert "100% success rate" in feed.description

    async def test_given_description_and_language_are_kept(
        self, service, usage_repository, feed_catalog
    ):
        url = "https://example.jp/rss"
        await _report(usage_repository, url, [(3, True)] * 4)

        result = await service.promote_if_qualified(
            url, CATEGORY, "Example JP", description="Tech news", language="ja"
        )

        assert result.promoted
        feed = feed_catalog.feeds[(CATEGORY, url)]
        assert feed.description == "Tech news"
        assert feed.language == "ja"

    async def test_promotion_is_idempotent(self, service, usage_repository, feed_catalog):
        url = "https://example.com/rss"
        await _report(usage_repository, url, [(5, True)] * 3)

        first = await service.promote_if_qualified(url, CATEGORY, "Example")
        second = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert first.promoted is True
        assert second.outcome is PromotionOutcome.ALREADY_EXISTS
        assert second.promoted is False
        assert len(feed_catalog.feeds) == 1

    async def test_existing_catalog_feed_is_left_untouched(
        self, usage_repository, feed_catalog
    ):
        url = "https://example.com/rss"
        feed_catalog.feeds[(CATEGORY, url)] = _catalog_feed(url)
        await _report(usage_repository, url, [(5, True)] * 5)
        service = FeedPromotionService(usage_repository, feed_catalog)

        result = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert result.outcome is PromotionOutcome.ALREADY_EXISTS
        assert feed_catalog.feeds[(CATEGORY, url)].priority == 10

    async def test_url_match_is_exact(self, service, usage_repository, feed_catalog):
        url = "https://example.com/rss"
        feed_catalog.feeds[(CATEGORY, url.upper())] = _catalog_feed(url.upper())
        await _report(usage_repository, url, [(5, True)] * 3)

        result = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert result.promoted is True
        assert len(feed_catalog.feeds) == 2

    async def test_below_success_rate_is_not_promoted(
        self, service, usage_repository, feed_catalog
    ):
        url = "https://flaky.example.com/rss"
        await _report(usage_repository, url, [(4, True), (4, True), (4, False)])

        result = await service.promote_if_qualified(url, CATEGORY, "Flaky")

        assert result.outcome is PromotionOutcome.NOT_QUALIFIED
        assert not feed_catalog.feeds

    async def test_unreported_feed_is_not_promoted(self, service, feed_catalog):
        result = await service.promote_if_qualified(
            "https://unknown.example.com/rss", CATEGORY, "Unknown"
        )
        assert result.outcome is PromotionOutcome.NOT_QUALIFIED
        assert not feed_catalog.feeds

    async def test_catalog_read_failure_is_contained(self, service, feed_catalog):
        feed_catalog.list_error = ConnectionError("catalog down")

        result = await service.promote_if_qualified(
            "https://example.com/rss", CATEGORY, "Example"
        )

        assert result.outcome is PromotionOutcome.STORE_ERROR
        assert result.promoted is False
        assert "catalog down" in (result.error or "")

    async def test_usage_read_failure_is_contained(self, service, usage_repository):
        url = "https://example.com/rss"
        usage_repository.failing_urls.add(url)

        result = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert result.outcome is PromotionOutcome.STORE_ERROR

    async def test_concurrent_promoter_wins_race(self, usage_repository, feed_catalog):
        url = "https://example.com/rss"
        await _report(usage_repository, url, [(5, True)] * 3)

        class RacingCatalog(type(feed_catalog)):
            async def list_feeds(self, category_id):
                # Another process inserts right after our duplicate check.
                feeds = await super().list_feeds(category_id)
                self.feeds.setdefault((CATEGORY, url), _catalog_feed(url))
                return feeds

        service = FeedPromotionService(usage_repository, RacingCatalog())

        result = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert result.outcome is PromotionOutcome.ALREADY_EXISTS


class TestResultTruthiness:
    async def test_promoted_result_is_truthy(self, service, usage_repository):
        url = "https://example.com/rss"
        await _report(usage_repository, url, [(5, True)] * 3)

        result = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert bool(result) is True

    async def test_not_qualified_result_is_falsy(self, service):
        result = await service.promote_if_qualified(
            "https://never.example.com/rss", CATEGORY, "Never"
        )

        assert result.outcome is PromotionOutcome.NOT_QUALIFIED
        assert bool(result) is False

    async def test_already_exists_result_is_falsy(self, usage_repository, feed_catalog):
        url = "https://example.com/rss"
        await _report(usage_repository, url, [(5, True)] * 3)
        feed_catalog.feeds[(CATEGORY, url)] = _catalog_feed(url)
        service = FeedPromotionService(usage_repository, feed_catalog)

        result = await service.promote_if_qualified(url, CATEGORY, "Example")

        assert result.outcome is PromotionOutcome.ALREADY_EXISTS
        assert bool(result) is False

    async def test_store_error_result_is_falsy(self, service, feed_catalog):
        feed_catalog.list_error = ConnectionError("catalog down")

        result = await service.promote_if_qualified(
            "https://example.com/rss", CATEGORY, "Example"
        )

        assert result.outcome is PromotionOutcome.STORE_ERROR
        assert bool(result) is False


class TestPromoteBatch:
    async def test_counts_only_new_promotions(self, service, usage_repository, feed_catalog):
        existing = "https://existing.example.com/rss"
        qualified = "https://good.example.com/rss"
        unqualified = "https://new.example.com/rss"
        feed_catalog.feeds[(CATEGORY, existing)] = _catalog_feed(existing)
        await _report(usage_repository, existing, [(5, True)] * 3)
        await _report(usage_repository, qualified, [(5, True)] * 3)
        await _report(usage_repository, unqualified, [(5, True)])

        promoted = await service.promote_batch(
            [existing, qualified, unqualified], CATEGORY, {}, {}
        )

        assert promoted == 1
        assert (CATEGORY, qualified) in feed_catalog.feeds
        assert (CATEGORY, unqualified) not in feed_catalog.feeds

    async def test_one_failure_does_not_affect_others(
        self, service, usage_repository, feed_catalog
    ):
        broken = "https://broken.example.com/rss"
        healthy = "https://healthy.example.com/rss"
        await _report(usage_repository, broken, [(5, True)] * 3)
        await _report(usage_repository, healthy, [(5, True)] * 3)
        feed_catalog.failing_creates.add(broken)

        results = await service.evaluate_batch([broken, healthy], CATEGORY, {}, {})

        outcomes = {result.url: result.outcome for result in results}
        assert outcomes[broken] is PromotionOutcome.STORE_ERROR
        assert outcomes[healthy] is PromotionOutcome.PROMOTED
        assert await service.promote_batch([broken], CATEGORY, {}, {}) == 0

    async def test_titles_and_languages_come_from_maps(
        self, service, usage_repository, feed_catalog
    ):
        titled = "https://titled.example.com/rss"
        untitled = "https://untitled.example.com/feeds/all.xml"
        await _report(usage_repository, titled, [(5, True)] * 3)
        await _report(usage_repository, untitled, [(5, True)] * 3)

        promoted = await service.promote_batch(
            [titled, untitled],
            CATEGORY,
            {titled: "Titled Feed", untitled: ""},
            {titled: "ja"},
        )

        assert promoted == 2
        assert feed_catalog.feeds[(CATEGORY, titled)].title == "Titled Feed"
        assert feed_catalog.feeds[(CATEGORY, titled)].language == "ja"
        assert (
            feed_catalog.feeds[(CATEGORY, untitled)].title == "untitled.example.com"
        )
        assert feed_catalog.feeds[(CATEGORY, untitled)].language == "en"

    async def test_duplicate_urls_in_batch_promote_once(
        self, service, usage_repository, feed_catalog
    ):
        url = "https://example.com/rss"
        await _report(usage_repository, url, [(5, True)] * 3)

        promoted = await service.promote_batch([url, url], CATEGORY, {}, {})

        assert promoted == 1
        assert len(feed_catalog.feeds) == 1

    async def test_empty_batch(self, service):
        assert await service.promote_batch([], CATEGORY, {}, {}) == 0
