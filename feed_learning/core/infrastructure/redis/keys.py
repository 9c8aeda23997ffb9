"""Redis Key 命名规范。

Redis 用于：
- Feed 表: 主键条目 (PK/SK) 与排序索引 (GSI1)
- Popular feeds 缓存
"""


class RedisKeys:
    """Redis Key 命名空间管理。"""

    # 表条目，pk 带长度前缀，URL 中含分隔符时 key 仍唯一
    # {table}:item:{len(pk)}:{pk}|{sk}
    ITEM_SEGMENT = "item"

    # 按分区键列出排序键
    # {table}:PK:{pk}
    PARTITION_SEGMENT = "PK"

    # 二级排序索引
    # {table}:GSI1:{gsi1pk}
    GSI1_SEGMENT = "GSI1"

    # 缓存
    # cache:popular_feeds:{category_id}
    POPULAR_FEEDS_CACHE_PREFIX = "cache:popular_feeds"

    # 条目/索引成员中的键分隔符
    KEY_SEPARATOR = "|"

    @classmethod
    def item(cls, table: str, pk: str, sk: str) -> str:
        """生成表条目 key。

        Args:
            table: 表名（命名空间前缀）
            pk: 分区键，如 FEED_USAGE#https://example.com/rss
            sk: 排序键，如 CATEGORY#tech

        Returns:
            格式化的 Redis key
        """
        return f"{table}:{cls.ITEM_SEGMENT}:{len(pk)}:{pk}{cls.KEY_SEPARATOR}{sk}"

    @classmethod
    def partition(cls, table: str, pk: str) -> str:
        """生成分区成员列表 key。"""
        return f"{table}:{cls.PARTITION_SEGMENT}:{pk}"

    @classmethod
    def gsi1(cls, table: str, gsi1pk: str) -> str:
        """生成 GSI1 排序索引 key。"""
        return f"{table}:{cls.GSI1_SEGMENT}:{gsi1pk}"

    @classmethod
    def popular_feeds(cls, category_id: str) -> str:
        """生成 popular feeds 缓存 key。"""
        return f"{cls.POPULAR_FEEDS_CACHE_PREFIX}:{category_id}"

    @classmethod
    def popular_feeds_pattern(cls) -> str:
        """用于 SCAN 的 popular feeds 缓存模式。"""
        return f"{cls.POPULAR_FEEDS_CACHE_PREFIX}:*"
