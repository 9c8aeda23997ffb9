"""Base mapper for entity-record conversion."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

E = TypeVar("E")  # Entity type
M = TypeVar("M")  # Stored record type


class BaseMapper(ABC, Generic[E, M]):
    """Base mapper for converting between domain entities and stored records."""

    @abstractmethod
    def to_domain(self, model: M) -> E:
        """Convert stored record to domain entity."""
        pass

    @abstractmethod
    def to_model(self, entity: E) -> M:
        """Convert domain entity to stored record."""
        pass

