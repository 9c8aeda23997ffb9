#!/usr/bin/env python3
"""Feed usage 报告脚本。

列出分类下使用最多的 Feed，以及是否满足晋升条件。

使用方式：
    # 查看分类 tech 的前 10 个 Feed
    python scripts/feed_usage_report.py tech --limit 10

    # JSON 输出
    python scripts/feed_usage_report.py tech --json

    # 只检查 Redis 连通性
    python scripts/feed_usage_report.py --check-redis
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from feed_learning.core.config import settings  # noqa: E402
from feed_learning.core.infrastructure.logging import setup_logging  # noqa: E402
from feed_learning.core.infrastructure.redis.client import (  # noqa: E402
    RedisUnavailableError,
    get_async_redis_client,
)
from feed_learning.modules.feeds.domain.entities import FeedUsage  # noqa: E402
from feed_learning.modules.feeds.domain.promotion import (  # noqa: E402
    compute_priority,
    qualifies,
)
from feed_learning.modules.feeds.infrastructure.dependencies import (  # noqa: E402
    get_feed_usage_repository,
)


def build_rows(usages: list[FeedUsage]) -> list[dict]:
    rows = []
    for usage in usages:
        eligible = qualifies(usage)
        rows.append(
            {
                "url": usage.url,
                "title": usage.title,
                "usage_count": usage.usage_count,
                "success_rate": round(usage.success_rate, 2),
                "average_articles": round(usage.average_articles, 2),
                "last_used_at": usage.last_used_at.isoformat(),
                "qualifies": eligible,
                "priority": compute_priority(usage) if eligible else None,
            }
        )
    return rows


def print_table(category_id: str, rows: list[dict]) -> None:
    print(f"\nTop used feeds for category '{category_id}' ({len(rows)})")
    print("=" * 60)
    if not rows:
        print("  (no usage recorded)")
        return
    for row in rows:
        mark = "✅" if row["qualifies"] else "  "
        priority = f" priority={row['priority']}" if row["priority"] else ""
        print(
            f"{mark} {row['usage_count']:>6} uses | "
            f"{row['success_rate']:>6}% | avg {row['average_articles']:>5} | "
            f"{row['title']} <{row['url']}>{priority}"
        )


async def check_redis() -> dict:
    try:
        async with get_async_redis_client(timeout=5.0) as client:
            result = await client.health_check()
        return result.to_dict()
    except RedisUnavailableError as e:
        return {"status": "error", "connected": False, "error": str(e)}


async def report(category_id: str, limit: int) -> list[dict]:
    async with get_async_redis_client(timeout=5.0) as client:
        repository = get_feed_usage_repository(client)
        usages = await repository.get_top_used(category_id, limit)
    return build_rows(usages)


def main() -> int:
    setup_logging()

    parser = argparse.ArgumentParser(description="Feed usage report")
    parser.add_argument("category_id", nargs="?", help="分类ID")
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.POPULAR_FEEDS_DEFAULT_LIMIT,
        help="最多列出的 Feed 数量",
    )
    parser.add_argument("--json", action="store_true", help="JSON 输出")
    parser.add_argument(
        "--check-redis", action="store_true", help="只检查 Redis 连通性"
    )
    args = parser.parse_args()

    if args.check_redis:
        result = asyncio.run(check_redis())
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return 0 if result.get("connected") else 1

    if not args.category_id:
        parser.error("category_id is required unless --check-redis is given")

    try:
        rows = asyncio.run(report(args.category_id, args.limit))
    except RedisUnavailableError as e:
        print(f"Redis unavailable: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(rows, indent=2, ensure_ascii=False))
    else:
        print_table(args.category_id, rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())
