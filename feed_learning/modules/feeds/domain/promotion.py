"""Promotion criteria for adding learned feeds to a category catalog."""

import math
from urllib.parse import urlsplit

from feed_learning.modules.feeds.domain.entities import FeedUsage


class PromotionCriteria:
    """Thresholds a feed must meet before it is promoted."""

    MIN_USAGE_COUNT = 3
    MIN_SUCCESS_RATE = 70.0  # percent
    MIN_AVERAGE_ARTICLES = 2.0

    # priority = max(PRIORITY_FLOOR, PRIORITY_BASE - effective successful uses)
    PRIORITY_BASE = 100
    PRIORITY_FLOOR = 1


def qualifies(usage: FeedUsage | None) -> bool:
    """Whether a usage record meets every promotion threshold."""
    if usage is None:
        return False
    return (
        usage.usage_count >= PromotionCriteria.MIN_USAGE_COUNT
        and usage.success_rate >= PromotionCriteria.MIN_SUCCESS_RATE
        and usage.average_articles >= PromotionCriteria.MIN_AVERAGE_ARTICLES
    )


def compute_priority(usage: FeedUsage) -> int:
    """Catalog priority for a promoted feed; more successful uses rank higher."""
    effective_uses = math.floor(usage.usage_count * usage.success_rate / 100)
    return max(
        PromotionCriteria.PRIORITY_FLOOR,
        PromotionCriteria.PRIORITY_BASE - effective_uses,
    )


def auto_description(usage: FeedUsage) -> str:
    return (
        f"Automatically learned feed with {usage.usage_count} uses "
        f"and {usage.success_rate:g}% success rate"
    )


def fallback_title(url: str) -> str:
    """Host segment of the URL, or the URL itself when there is none."""
    try:
        host = urlsplit(url).netloc
    except ValueError:
        host = ""
    return host or url


def describe_shortfall(usage: FeedUsage) -> str:
    """Human-readable comparison of a record against the thresholds."""
    return (
        f"usage={usage.usage_count}/{PromotionCriteria.MIN_USAGE_COUNT}, "
        f"success={usage.success_rate:g}%/{PromotionCriteria.MIN_SUCCESS_RATE:g}%, "
        f"avg={usage.average_articles:g}/{PromotionCriteria.MIN_AVERAGE_ARTICLES:g}"
    )
