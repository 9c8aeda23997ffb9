"""Promote well-performing feeds into their category catalog."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

from loguru import logger

from feed_learning.core.config import settings
from feed_learning.core.infrastructure.logging import BusinessEvents
from feed_learning.modules.feeds.application.models import (
    PromotionOutcome,
    PromotionResult,
)
from feed_learning.modules.feeds.domain.entities import CatalogFeed
from feed_learning.modules.feeds.domain.exceptions import FeedAlreadyInCatalogError
from feed_learning.modules.feeds.domain.promotion import (
    auto_description,
    compute_priority,
    describe_shortfall,
    fallback_title,
    qualifies,
)
from feed_learning.modules.feeds.domain.repository import (
    FeedCatalog,
    FeedUsageRepository,
)


class FeedPromotionService:
    """Decide per feed whether it has earned a place in the category catalog.

    Promotion never raises: every failure is logged and reported as
    ``PromotionOutcome.STORE_ERROR`` so the generation pipeline that
    triggered it keeps going.
    """

    def __init__(
        self,
        usage_repository: FeedUsageRepository,
        catalog: FeedCatalog,
    ) -> None:
        self.usage_repository = usage_repository
        self.catalog = catalog

    async def promote_if_qualified(
        self,
        url: str,
        category_id: str,
        title: str,
        description: str | None = None,
        language: str | None = None,
    ) -> PromotionResult:
        """Create a catalog feed for ``url`` if its usage qualifies.

        Args:
            url: Feed URL
            category_id: Category the usage was recorded under
            title: Feed title for the catalog entry
            description: Catalog description, generated from usage when omitted
            language: Feed language, ``DEFAULT_FEED_LANGUAGE`` when omitted

        Returns:
            PromotionResult: outcome of this attempt
        """
        try:
            existing_feeds = await self.catalog.list_feeds(category_id)
            if any(feed.url == url for feed in existing_feeds):
                logger.debug(f"Feed {url} already exists in category {category_id}")
                return self._skipped(url, category_id, PromotionOutcome.ALREADY_EXISTS)

            usage = await self.usage_repository.get_usage(url, category_id)
            if usage is None:
                logger.debug(f"No usage data found for {url} in {category_id}")
                return self._skipped(url, category_id, PromotionOutcome.NOT_QUALIFIED)
            if not qualifies(usage):
                logger.debug(
                    f"Feed {url} does not meet promotion criteria: "
                    f"{describe_shortfall(usage)}"
                )
                return self._skipped(url, category_id, PromotionOutcome.NOT_QUALIFIED)

            priority = compute_priority(usage)
            feed = CatalogFeed(
                category_id=category_id,
                url=url,
                title=title,
                description=description or auto_description(usage),
                language=language or settings.DEFAULT_FEED_LANGUAGE,
                priority=priority,
                is_active=True,
            )
            await self.catalog.create_feed(feed)

        except FeedAlreadyInCatalogError:
            logger.info(f"Feed {url} was promoted concurrently in {category_id}")
            return self._skipped(url, category_id, PromotionOutcome.ALREADY_EXISTS)
        except Exception as e:
            logger.exception(f"Error promoting feed {url} in {category_id}: {e}")
            BusinessEvents.feed_promotion_failed(
                url=url,
                category_id=category_id,
                error=str(e),
            )
            return PromotionResult(
                url=url,
                category_id=category_id,
                outcome=PromotionOutcome.STORE_ERROR,
                error=str(e),
            )

        BusinessEvents.feed_promoted(
            url=url,
            category_id=category_id,
            priority=priority,
            usage_count=usage.usage_count,
            success_rate=round(usage.success_rate, 2),
        )
        logger.info(
            f"Promoted feed to category catalog: {title} ({url}) -> "
            f"{category_id} with priority {priority}"
        )
        return PromotionResult(
            url=url,
            category_id=category_id,
            outcome=PromotionOutcome.PROMOTED,
            priority=priority,
        )

    async def evaluate_batch(
        self,
        urls: Sequence[str],
        category_id: str,
        title_by_url: Mapping[str, str],
        language_by_url: Mapping[str, str],
    ) -> list[PromotionResult]:
        """Attempt promotion for every URL concurrently, one result per URL."""
        logger.info(
            f"Starting promotion check for {len(urls)} feeds in category {category_id}"
        )
        results = await asyncio.gather(
            *(
                self.promote_if_qualified(
                    url,
                    category_id,
                    title_by_url.get(url) or fallback_title(url),
                    language=language_by_url.get(url),
                )
                for url in urls
            )
        )

        promoted = sum(1 for result in results if result.promoted)
        failed = sum(
            1 for result in results if result.outcome is PromotionOutcome.STORE_ERROR
        )
        BusinessEvents.feed_promotion_batch_completed(
            category_id=category_id,
            total=len(urls),
            promoted=promoted,
            failed=failed,
        )
        if promoted:
            logger.info(
                f"Promoted {promoted}/{len(urls)} feeds to category {category_id}"
            )
        return list(results)

    async def promote_batch(
        self,
        urls: Sequence[str],
        category_id: str,
        title_by_url: Mapping[str, str],
        language_by_url: Mapping[str, str],
    ) -> int:
        """Attempt promotion for every URL; return how many were promoted."""
        results = await self.evaluate_batch(
            urls, category_id, title_by_url, language_by_url
        )
        return sum(1 for result in results if result.promoted)

    @staticmethod
    def _skipped(
        url: str,
        category_id: str,
        outcome: PromotionOutcome,
    ) -> PromotionResult:
        BusinessEvents.feed_promotion_skipped(
            url=url,
            category_id=category_id,
            outcome=outcome.value,
        )
        return PromotionResult(url=url, category_id=category_id, outcome=outcome)
