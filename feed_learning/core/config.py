"""Application configuration."""

from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "feed-learning"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 10.0  # 读写超时
    REDIS_CONNECT_TIMEOUT: float = 5.0  # 连接超时

    # Feed table layout
    FEED_TABLE_NAME: str = "newspapers-local"

    # Feed usage
    FEED_USAGE_MAX_WRITE_ATTEMPTS: int = 5  # WATCH 冲突重试次数
    POPULAR_FEEDS_CACHE_TTL_SEC: int = 300  # 5 minutes
    POPULAR_FEEDS_DEFAULT_LIMIT: int = 5

    # Promotion
    DEFAULT_FEED_LANGUAGE: str = "en"

    @computed_field
    @property
    def log_file_pattern(self) -> str:
        return f"{self.LOG_DIR}/feed_learning_{{time:YYYY-MM-DD}}.log"


settings = Settings()
