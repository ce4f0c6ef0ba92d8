"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import TypeVar, Optional, Any, Protocol

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic read/write operations."""

    def get_by_id(self, id: Any) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def add(self, obj: T) -> T:
        """Persist a new entity."""
        ...
