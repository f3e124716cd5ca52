"""
Base Repository Interface.
Defines the standard contract for table data access operations.
"""

from typing import Any, Dict, Iterable, Optional, Protocol, TypeVar

from table_dao.domain.entities import Entity
from table_dao.domain.schemas.search import SearchFilter, SearchResult

T = TypeVar("T", bound=Entity)


class CrudRepository(Protocol[T]):
    """Interface for generic CRUD and search operations."""

    def save(self, entity: T) -> T:
        """Create or update an entity depending on whether it has an id."""
        ...

    def find_all(self) -> Dict[int, T]:
        """Get every entity in the table, keyed by id."""
        ...

    def find_by_id(self, entity_id: int) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def find_by_ids(self, entity_ids: Iterable[int]) -> Dict[int, T]:
        """Get the entities matching any of the given IDs."""
        ...

    def find_filtered(self, search_filter: SearchFilter) -> SearchResult:
        """Get one page of entities matching a filter, with the total count."""
        ...

    def find_by(self, column: str, value: Any) -> Dict[int, T]:
        """Get the entities whose column matches a value (a collection matches any member)."""
        ...

    def find_one_by(self, column: str, value: Any) -> Optional[T]:
        """Get the first entity whose column matches a value, or None."""
        ...

    def delete_all(self) -> None:
        """Delete every entity in the table."""
        ...

    def delete_by_id(self, entity_id: int) -> None:
        """Delete an entity by ID."""
        ...

    def delete_by(self, column: str, value: Any) -> None:
        """Delete every entity whose column matches a value."""
        ...
