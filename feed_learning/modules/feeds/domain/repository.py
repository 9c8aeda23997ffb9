"""Feed usage repository interface and catalog port."""

from abc import ABC, abstractmethod
from typing import Protocol

from feed_learning.modules.feeds.domain.entities import CatalogFeed, FeedUsage


class FeedUsageRepository(ABC):
    """Feed usage repository interface.

    One record per (url, category_id). Implementations must apply
    ``record_usage`` atomically with respect to concurrent reports for the
    same pair.
    """

    @abstractmethod
    async def get_usage(self, url: str, category_id: str) -> FeedUsage | None:
        """Get usage for a feed in a category, ``None`` if never reported."""
        pass

    @abstractmethod
    async def record_usage(
        self,
        url: str,
        category_id: str,
        title: str,
        article_count: int,
        success: bool,
    ) -> FeedUsage:
        """Create or update the usage record and return the stored state."""
        pass

    @abstractmethod
    async def get_top_used(self, category_id: str, limit: int) -> list[FeedUsage]:
        """List up to ``limit`` records ordered by usage count, descending."""
        pass


class FeedCatalog(Protocol):
    """Port for the curated per-category feed catalog."""

    async def list_feeds(self, category_id: str) -> list[CatalogFeed]: ...

    async def create_feed(self, feed: CatalogFeed) -> CatalogFeed: ...
