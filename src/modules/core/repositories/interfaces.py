"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that the catalog and
order repository contracts extend.  Service-layer code depends on these
abstractions, never on the Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the aggregate managed by the
    repository (e.g. ``Order``, ``Product``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key, ``None`` if absent."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""
