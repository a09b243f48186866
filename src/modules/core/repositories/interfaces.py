"""Base repository contract shared by the module repositories.

Services receive repositories through their constructors and only see
these abstractions, so tests can hand them in-memory implementations.
Concrete Django repositories translate ORM failures into the owning
module's domain exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """CRUD surface for one aggregate type ``T`` (``Exchange``, ``Address``)."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """``None`` when missing or when *id* is not a valid key."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """Equality-filtered listing; order is up to the implementation."""

    @abstractmethod
    def save(self, entity: T) -> T:
        ...

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Hard or soft delete, as the aggregate defines. ``False`` if absent."""
