"""
Entity converters.
Map database rows to domain entities and back.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Optional, Type, TypeVar

from table_dao.domain.entities import Entity

E = TypeVar("E", bound=Entity)
Row = Dict[str, Any]
EntityDecorator = Callable[[Any], None]


class EntityConverter(ABC, Generic[E]):
    """Bidirectional Row <-> Entity mapping with a post-load decorator."""

    def __init__(self) -> None:
        self._entity_decorator: Optional[EntityDecorator] = None

    def set_entity_decorator(self, decorator: Optional[EntityDecorator]) -> None:
        """Register a callback run on every entity built by to_entity()."""
        self._entity_decorator = decorator

    def to_entity(self, row: Row) -> E:
        entity = self._to_entity(row)
        if self._entity_decorator is not None:
            self._entity_decorator(entity)
        return entity

    @abstractmethod
    def to_row(self, entity: E) -> Row:
        ...

    @abstractmethod
    def _to_entity(self, row: Row) -> E:
        ...


class PydanticEntityConverter(EntityConverter[E]):
    """Converter for entities whose fields map one-to-one onto columns."""

    def __init__(self, entity_class: Type[E]):
        super().__init__()
        self.entity_class = entity_class

    def to_row(self, entity: E) -> Row:
        return entity.model_dump()

    def _to_entity(self, row: Row) -> E:
        return self.entity_class.model_validate(row)
