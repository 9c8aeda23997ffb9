"""Feed domain entities."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from feed_learning.core.domain.base_entity import BaseEntity, utc_now


class FeedUsage(BaseEntity):
    """Running usage statistics of one feed within one category.

    ``success_rate`` and ``average_articles`` are exact running means over all
    reports. They are derived from the raw ``success_count`` and
    ``total_articles`` tallies so repeated updates never accumulate
    floating-point drift.
    """

    url: str = Field(..., min_length=1, description="Feed URL")
    category_id: str = Field(..., min_length=1, description="分类ID")
    title: str = Field(default="", description="最近一次上报的 Feed 名称")
    usage_count: int = Field(..., ge=1, description="上报次数")
    success_rate: float = Field(..., ge=0, le=100, description="成功率 (0-100)")
    average_articles: float = Field(..., ge=0, description="平均文章数")
    success_count: int | None = Field(default=None, ge=0, description="成功次数")
    total_articles: int | None = Field(default=None, ge=0, description="文章总数")
    last_used_at: datetime = Field(default_factory=utc_now, description="最后使用时间")

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.url, self.category_id)

    @classmethod
    def first_report(
        cls,
        url: str,
        category_id: str,
        title: str,
        article_count: int,
        success: bool,
        now: datetime | None = None,
    ) -> FeedUsage:
        """Create the record for the first report of a (url, category) pair."""
        now = now or utc_now()
        return cls(
            url=url,
            category_id=category_id,
            title=title,
            usage_count=1,
            success_rate=100.0 if success else 0.0,
            average_articles=float(article_count),
            success_count=1 if success else 0,
            total_articles=article_count,
            last_used_at=now,
            created_at=now,
            updated_at=now,
        )

    def record_report(
        self,
        title: str,
        article_count: int,
        success: bool,
        now: datetime | None = None,
    ) -> None:
        """Fold one more report into the running statistics."""
        now = now or utc_now()
        previous_count = self.usage_count
        success_count, total_articles = self._tallies(previous_count)

        success_count += 1 if success else 0
        total_articles += article_count
        new_count = previous_count + 1

        self.success_count = success_count
        self.total_articles = total_articles
        self.usage_count = new_count
        self.success_rate = success_count * 100 / new_count
        self.average_articles = total_articles / new_count
        if title:
            self.title = title
        self.last_used_at = now
        self._update_timestamp(now)

    def _tallies(self, usage_count: int) -> tuple[int, int]:
        # Records written before the tallies existed only carry the means;
        # both tallies are integers, so rounding recovers them.
        success_count = self.success_count
        if success_count is None:
            success_count = round(self.success_rate * usage_count / 100)
        total_articles = self.total_articles
        if total_articles is None:
            total_articles = round(self.average_articles * usage_count)
        return success_count, total_articles


class CatalogFeed(BaseEntity):
    """A feed in a category's curated catalog."""

    category_id: str = Field(..., min_length=1, description="分类ID")
    url: str = Field(..., min_length=1, description="Feed URL")
    title: str = Field(..., min_length=1, description="Feed 名称")
    description: str = Field(default="", description="描述")
    language: str = Field(default="en", min_length=1, description="语言")
    priority: int = Field(..., ge=1, description="优先级（越小越靠前）")
    is_active: bool = Field(default=True, description="是否启用")

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.category_id, self.url)
