"""Feed application data models."""

from dataclasses import dataclass
from enum import StrEnum


class PromotionOutcome(StrEnum):
    """晋升尝试结果。"""

    PROMOTED = "promoted"
    NOT_QUALIFIED = "not_qualified"
    ALREADY_EXISTS = "already_exists"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class PromotionResult:
    url: str
    category_id: str
    outcome: PromotionOutcome
    priority: int | None = None
    error: str | None = None

    @property
    def promoted(self) -> bool:
        return self.outcome is PromotionOutcome.PROMOTED

    def __bool__(self) -> bool:
        return self.promoted


@dataclass(frozen=True)
class LearningResult:
    """Outcome of learning from one newspaper generation."""

    category_id: str
    feeds_total: int
    recorded: int
    record_failures: int
    promoted: int
