"""Logging configuration with structlog integration.

提供两种日志记录方式：
1. loguru: 用于一般调试日志
2. structlog: 用于关键业务事件的结构化日志

入口（如 scripts/feed_usage_report.py）启动时调用 setup_logging()。
"""

import sys
from typing import Any

import structlog
from loguru import logger

from feed_learning.core.config import Settings, settings

_LOG_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(config: Settings | None = None) -> None:
    """Configure loguru and the structlog business event logger.

    Args:
        config: Settings to configure from, the module settings when omitted
    """
    config = config or settings
    _configure_structlog(config)
    _configure_loguru(config)

    logger.info(
        f"Logging configured for {config.ENVIRONMENT} with level: {config.LOG_LEVEL}"
    )


def business_event_renderer(environment: str) -> Any:
    """本地输出可读的控制台格式，其它环境输出 JSON。"""
    if environment == "local":
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def _configure_structlog(config: Settings) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            business_event_renderer(config.ENVIRONMENT),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LOG_LEVELS.get(config.LOG_LEVEL.upper(), _LOG_LEVELS["INFO"])
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru(config: Settings) -> None:
    """stderr 输出；非 local 环境追加按天轮转的文件日志。"""
    logger.remove()
    logger.add(sys.stderr, level=config.LOG_LEVEL, format=_CONSOLE_FORMAT, colorize=True)

    if config.ENVIRONMENT != "local":
        logger.add(
            config.log_file_pattern,
            rotation="00:00",
            retention="30 days",
            level="INFO",
            format=_FILE_FORMAT,
        )


# ============================================================================
# 业务事件日志记录器
# ============================================================================


class BusinessEvents:
    """业务事件日志助手类。

    Usage:
        from feed_learning.core.infrastructure.logging import BusinessEvents

        BusinessEvents.feed_promoted(url="...", category_id="tech", priority=97)
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def feed_usage_recorded(
        cls,
        url: str,
        category_id: str,
        article_count: int,
        success: bool,
        usage_count: int,
        **extra: Any,
    ) -> None:
        """记录 Feed 使用上报事件。"""
        cls._log.info(
            "feed_usage_recorded",
            event_type="feed_usage",
            url=url,
            category_id=category_id,
            article_count=article_count,
            success=success,
            usage_count=usage_count,
            **extra,
        )

    @classmethod
    def feed_promoted(
        cls,
        url: str,
        category_id: str,
        priority: int,
        **extra: Any,
    ) -> None:
        """记录 Feed 晋升到分类目录事件。"""
        cls._log.info(
            "feed_promoted",
            event_type="promotion",
            url=url,
            category_id=category_id,
            priority=priority,
            **extra,
        )

    @classmethod
    def feed_promotion_skipped(
        cls,
        url: str,
        category_id: str,
        outcome: str,
        **extra: Any,
    ) -> None:
        cls._log.debug(
            "feed_promotion_skipped",
            event_type="promotion",
            url=url,
            category_id=category_id,
            outcome=outcome,
            **extra,
        )

    @classmethod
    def feed_promotion_failed(
        cls,
        url: str,
        category_id: str,
        error: str,
        **extra: Any,
    ) -> None:
        """记录 Feed 晋升失败事件。"""
        cls._log.warning(
            "feed_promotion_failed",
            event_type="promotion_error",
            url=url,
            category_id=category_id,
            error=error,
            **extra,
        )

    @classmethod
    def feed_promotion_batch_completed(
        cls,
        category_id: str,
        total: int,
        promoted: int,
        failed: int,
        **extra: Any,
    ) -> None:
        cls._log.info(
            "feed_promotion_batch_completed",
            event_type="promotion",
            category_id=category_id,
            total=total,
            promoted=promoted,
            failed=failed,
            **extra,
        )

    @classmethod
    def feature_degraded(
        cls,
        feature: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录功能降级事件。"""
        cls._log.warning(
            "feature_degraded",
            event_type="degradation",
            feature=feature,
            reason=reason,
            **extra,
        )
