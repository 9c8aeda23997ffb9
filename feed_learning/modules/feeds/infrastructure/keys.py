"""Feed table key layout.

Usage items:   PK = FEED_USAGE#{url}      SK = CATEGORY#{category_id}
Usage ranking: GSI1PK = CATEGORY#{category_id}
               GSI1SK = USAGE_COUNT#{usage_count:010d}
Catalog feeds: PK = CATEGORY#{category_id} SK = FEED#{url}
"""

from feed_learning.core.infrastructure.redis.keys import RedisKeys

FEED_USAGE_PREFIX = "FEED_USAGE#"
CATEGORY_PREFIX = "CATEGORY#"
FEED_PREFIX = "FEED#"
USAGE_COUNT_PREFIX = "USAGE_COUNT#"

USAGE_COUNT_WIDTH = 10
MAX_USAGE_COUNT = 10**USAGE_COUNT_WIDTH - 1

KEY_ATTRIBUTES = ("PK", "SK", "GSI1PK", "GSI1SK")


def usage_pk(url: str) -> str:
    return f"{FEED_USAGE_PREFIX}{url}"


def category_key(category_id: str) -> str:
    return f"{CATEGORY_PREFIX}{category_id}"


def usage_count_sort_key(usage_count: int) -> str:
    """GSI1SK for a usage count; zero padding keeps string order numeric."""
    if usage_count < 0 or usage_count > MAX_USAGE_COUNT:
        raise ValueError(
            f"usage_count {usage_count} does not fit in {USAGE_COUNT_WIDTH} digits"
        )
    return f"{USAGE_COUNT_PREFIX}{usage_count:0{USAGE_COUNT_WIDTH}d}"


def catalog_sk(url: str) -> str:
    return f"{FEED_PREFIX}{url}"


def ranking_member(usage_count: int, url: str) -> str:
    """Member of the GSI1 sorted set; the SK is implied by the index partition."""
    return f"{usage_count_sort_key(usage_count)}{RedisKeys.KEY_SEPARATOR}{usage_pk(url)}"


def pk_from_ranking_member(member: str) -> str:
    _, _, pk = member.partition(RedisKeys.KEY_SEPARATOR)
    return pk
