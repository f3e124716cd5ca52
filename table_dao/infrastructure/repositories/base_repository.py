"""
Generic table repository built on the fluent query builder.
"""

from typing import Any, Dict, Generic, Iterable, Mapping, Optional, TypeVar

import structlog

from table_dao.core.exceptions import EntityNotFoundException, PersistenceError
from table_dao.domain.entities import Entity
from table_dao.domain.repositories.base import CrudRepository
from table_dao.domain.schemas.search import OrderDirection, SearchFilter, SearchResult
from table_dao.infrastructure.converters import EntityConverter, Row
from table_dao.infrastructure.database import DatabaseConnection
from table_dao.infrastructure.query_builder import QueryBuilder, SelectQuery, is_collection
from table_dao.infrastructure.repositories.hooks import RepositoryHooks

EntityType = TypeVar("EntityType", bound=Entity)

logger = structlog.get_logger(__name__)


class TableRepository(CrudRepository[EntityType], Generic[EntityType]):
    """
    CRUD and filtered search over a single table.

    Concrete repositories supply the table name and a converter, and
    optionally a RepositoryHooks instance. Nothing is cached: every find
    re-queries the database and rebuilds entities through the converter.

    delete_all() and delete_by() run before_delete hooks first and then a
    single bulk DELETE. The two steps are not atomic; wrap them in an
    external transaction if the hooks must not fire for a failed delete.
    """

    id_column: str = "id"

    def __init__(
        self,
        connection: DatabaseConnection,
        table_name: str,
        converter: EntityConverter[EntityType],
        hooks: Optional[RepositoryHooks[EntityType]] = None,
    ):
        self.set_database_connection(connection)
        self._table_name = table_name
        self._converter = converter
        self.hooks = hooks or RepositoryHooks()
        self._converter.set_entity_decorator(self.hooks.after_load)

    def set_database_connection(self, connection: DatabaseConnection) -> None:
        self.connection = connection
        self.query = QueryBuilder(connection)

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def converter(self) -> EntityConverter[EntityType]:
        return self._converter

    def save(self, entity: EntityType) -> EntityType:
        if entity.id:
            entity = self.update(entity)
        else:
            entity = self.create(entity)
        self.hooks.after_save(entity)
        return entity

    def create(self, entity: EntityType) -> EntityType:
        row = self._converter.to_row(entity)
        if not row.get(self.id_column):
            row.pop(self.id_column, None)

        new_id = (
            self.query.insert_into(self._table_name)
            .values(row)
            .returning(self.id_column)
            .execute()
        )
        if not new_id:
            raise PersistenceError(
                "Driver reported no generated id after insert",
                {"table": self._table_name},
            )

        logger.debug("Entity created", table=self._table_name, id=new_id)
        return entity.model_copy(update={"id": int(new_id)})

    def update(self, entity: EntityType) -> EntityType:
        row = self._converter.to_row(entity)
        affected = (
            self.query.update(self._table_name)
            .set(row)
            .where(self.id_column, entity.id)
            .execute()
        )
        logger.debug("Entity updated", table=self._table_name, id=entity.id, affected=affected)
        return entity

    def find_all(self) -> Dict[int, EntityType]:
        return self._rows_to_entities(self.query.from_(self._table_name))

    def find_by_id(self, entity_id: int) -> Optional[EntityType]:
        return self.find_one_by(self.id_column, entity_id)

    def get_by_id(self, entity_id: int) -> EntityType:
        """Like find_by_id, but a missing entity is an error."""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise EntityNotFoundException(
                f"No entity with {self.id_column}={entity_id} in {self._table_name}",
                {"table": self._table_name, "id": entity_id},
            )
        return entity

    def find_by_ids(self, entity_ids: Iterable[int]) -> Dict[int, EntityType]:
        return self.find_by(self.id_column, list(entity_ids))

    def find_by(self, column: str, value: Any) -> Dict[int, EntityType]:
        return self._rows_to_entities(self.query.from_(self._table_name).where(column, value))

    def find_one_by(self, column: str, value: Any) -> Optional[EntityType]:
        entities = self.find_by(column, value)
        if not entities:
            return None
        return next(iter(entities.values()))

    def find_filtered(self, search_filter: SearchFilter) -> SearchResult:
        query = self.query.from_(self._table_name)

        order_by = self.compile_order_by(search_filter.order)
        if order_by:
            query.order_by(order_by)

        self._apply_requirements(query, search_filter)
        if search_filter.page_size > 0:
            query.limit(search_filter.page_size)
            query.offset(search_filter.page_size * (search_filter.page_number - 1))
        entities = self._rows_to_entities(query)

        # LIMIT-ed results cannot be counted, so count the same WHERE clause separately
        count_query = self.query.from_(self._table_name)
        self._apply_requirements(count_query, search_filter)
        total_records = count_query.count()

        logger.debug(
            "Filtered search",
            table=self._table_name,
            returned=len(entities),
            total=total_records,
            page=search_filter.page_number,
        )
        return SearchResult(
            search_filter=search_filter,
            entities=entities,
            total_records=total_records,
            page_number=search_filter.page_number,
            page_size=search_filter.page_size,
        )

    def has_any_records(self) -> bool:
        return bool(self.query.from_(self._table_name).limit(1).all())

    def delete_all(self) -> None:
        for entity in self.find_all().values():
            self.hooks.before_delete(entity)
        deleted = self.query.delete_from(self._table_name).execute()
        logger.debug("Table cleared", table=self._table_name, deleted=deleted)

    def delete_by_id(self, entity_id: int) -> None:
        self.delete_by(self.id_column, entity_id)

    def delete_by(self, column: str, value: Any) -> None:
        if is_collection(value):
            value = list(value)
        for entity in self.find_by(column, value).values():
            self.hooks.before_delete(entity)
        deleted = self.query.delete_from(self._table_name).where(column, value).execute()
        logger.debug("Entities deleted", table=self._table_name, column=column, deleted=deleted)

    def _rows_to_entities(self, rows: Iterable[Row]) -> Dict[int, EntityType]:
        entities: Dict[int, EntityType] = {}
        for row in rows:
            entity = self._converter.to_entity(row)
            entities[entity.id] = entity
        return entities

    @staticmethod
    def _apply_requirements(query: SelectQuery, search_filter: SearchFilter) -> None:
        for requirement in search_filter.requirements:
            if requirement.negated:
                query.where(f"NOT {requirement.type}", requirement.value)
            else:
                query.where(requirement.type, requirement.value)

    @staticmethod
    def compile_order_by(order: Mapping[str, Any]) -> str:
        """Render an ordering spec as an ORDER BY clause body ("" when empty)."""
        return ", ".join(
            f"{column} {'DESC' if direction == OrderDirection.DESC else 'ASC'}"
            for column, direction in order.items()
        )
