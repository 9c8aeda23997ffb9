"""Learn from a finished newspaper generation."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

from loguru import logger

from feed_learning.core.infrastructure.logging import BusinessEvents
from feed_learning.modules.feeds.application.models import LearningResult
from feed_learning.modules.feeds.application.promotion_service import (
    FeedPromotionService,
)
from feed_learning.modules.feeds.application.usage_service import FeedUsageService
from feed_learning.modules.feeds.domain.promotion import fallback_title


class FeedLearningService:
    """Record usage for every feed of a generation, then promote the qualified.

    A feed counts as a success when it contributed at least one article.
    Failed usage reports are logged as a degraded condition and do not stop
    the remaining reports or the promotion pass.
    """

    def __init__(
        self,
        usage_service: FeedUsageService,
        promotion_service: FeedPromotionService,
    ) -> None:
        self.usage_service = usage_service
        self.promotion_service = promotion_service

    async def learn_from_generation(
        self,
        category_id: str,
        feed_urls: Sequence[str],
        article_counts: Mapping[str, int],
        titles: Mapping[str, str],
        languages: Mapping[str, str],
    ) -> LearningResult:
        outcomes = await asyncio.gather(
            *(
                self._record(
                    url,
                    category_id,
                    titles.get(url) or fallback_title(url),
                    article_counts.get(url, 0),
                )
                for url in feed_urls
            )
        )
        recorded = sum(1 for ok in outcomes if ok)
        logger.info(f"Recorded usage for {recorded}/{len(feed_urls)} feeds")

        promoted = await self.promotion_service.promote_batch(
            feed_urls, category_id, titles, languages
        )

        return LearningResult(
            category_id=category_id,
            feeds_total=len(feed_urls),
            recorded=recorded,
            record_failures=len(feed_urls) - recorded,
            promoted=promoted,
        )

    async def _record(
        self,
        url: str,
        category_id: str,
        title: str,
        article_count: int,
    ) -> bool:
        try:
            await self.usage_service.record_usage(
                url=url,
                category_id=category_id,
                title=title,
                article_count=article_count,
                success=article_count > 0,
            )
        except Exception as e:
            logger.error(f"Failed to record usage for {url} in {category_id}: {e}")
            BusinessEvents.feature_degraded(
                feature="feed_usage_recording",
                reason=str(e),
                url=url,
                category_id=category_id,
            )
            return False
        return True
