"""Base entity class for all domain entities."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(UTC)


class BaseEntity(BaseModel):
    """Base entity class for all domain entities.

    Entities here are keyed by natural keys rather than a surrogate id, so
    equality is defined by ``natural_key`` in subclasses. Attributes are
    serialized with camelCase aliases to keep the stored layout stable.
    """

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def natural_key(self) -> tuple[str, ...]:
        raise NotImplementedError

    def _update_timestamp(self, now: datetime | None = None) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = now or utc_now()

    def __eq__(self, other: Any) -> bool:
        """Entities are equal if their natural keys are equal."""
        if not isinstance(other, BaseEntity) or type(self) is not type(other):
            return NotImplemented
        return self.natural_key == other.natural_key

    def __hash__(self) -> int:
        return hash((type(self).__name__, *self.natural_key))
